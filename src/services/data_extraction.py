"""
Data Extraction Service.

Turns a call transcript into an ``ExtractionResult`` by running the
extraction strategies in priority order:

1. Advanced pattern extraction (confidence-scored).
2. Natural fallback, when advanced missed or scored below 0.5.
3. Structured tag line, when nothing else produced a result.
4. Structured backfill of empty fields on whatever result won.

The public ``extract`` never raises and never returns None; on total
failure it returns an all-null record with a failure marker.
"""

from __future__ import annotations

from typing import Any, Optional

from src.logging_config import get_logger
from src.schemas.extraction import ExtractionResult
from src.services.advanced_extraction import AdvancedExtractionStrategy
from src.services.extraction_strategies import ExtractionStrategy, is_usable_transcript
from src.services.natural_extraction import NaturalExtractionStrategy
from src.services.structured_extraction import StructuredTagStrategy, is_placeholder, parse_tags

logger = get_logger(__name__)

# Below this, an advanced result gives way to a natural hit.
NATURAL_FALLBACK_THRESHOLD = 0.5
NATURAL_CONFIDENCE = 0.6
STRUCTURED_CONFIDENCE = 0.8

NATURAL_METHOD = "standard_natural"
STRUCTURED_METHOD = "structured_format"


class IntelligentExtractor:
    """
    Orchestrates the extraction strategies.

    Holds no per-call state, so a single instance can serve concurrent
    requests.
    """

    def __init__(
        self,
        advanced: ExtractionStrategy | None = None,
        natural: ExtractionStrategy | None = None,
        structured: StructuredTagStrategy | None = None,
    ) -> None:
        self.advanced = advanced or AdvancedExtractionStrategy()
        self.natural = natural or NaturalExtractionStrategy()
        self.structured = structured or StructuredTagStrategy()

    @property
    def attempted_methods(self) -> list[str]:
        return [self.advanced.name, self.natural.name, self.structured.name]

    def extract(self, transcript: Any) -> ExtractionResult:
        if not is_usable_transcript(transcript):
            logger.warning("extraction_invalid_transcript", transcript_type=type(transcript).__name__)
            return ExtractionResult.failure(error="Invalid or empty transcript")

        logger.info("extraction_started", transcript_length=len(transcript))

        result = self._run(self.advanced, transcript)

        if result is None or result.confidence_score < NATURAL_FALLBACK_THRESHOLD:
            if result is not None:
                logger.info("advanced_extraction_low_confidence", confidence=round(result.confidence_score, 3))
            natural = self._run(self.natural, transcript)
            if natural is not None:
                # Full replacement: a weak advanced result is dropped entirely.
                result = natural.model_copy(update={
                    "confidence_score": NATURAL_CONFIDENCE,
                    "extraction_details": {"method": NATURAL_METHOD},
                })

        if result is None:
            structured = self._run(self.structured, transcript)
            if structured is not None:
                result = structured.model_copy(update={
                    "confidence_score": STRUCTURED_CONFIDENCE,
                    "extraction_details": {"method": STRUCTURED_METHOD},
                })

        if result is None:
            logger.warning("extraction_failed", attempted_methods=self.attempted_methods)
            return ExtractionResult.failure(
                method="fallback",
                error="No extraction strategy produced a result",
                transcript_length=len(transcript),
                attempted_methods=self.attempted_methods,
            )

        result = self._backfill(result, transcript)

        logger.info(
            "extraction_complete",
            call_type=result.type.value,
            confidence=round(result.confidence_score, 3),
            has_name=result.name is not None,
            has_phone=result.phone is not None,
            has_address=result.address is not None,
        )
        return result

    def _run(self, strategy: ExtractionStrategy, transcript: str) -> Optional[ExtractionResult]:
        try:
            return strategy.extract(transcript)
        except Exception as e:
            logger.error("extraction_strategy_error", strategy=strategy.name, error=str(e))
            return None

    def _backfill(self, result: ExtractionResult, transcript: str) -> ExtractionResult:
        """Fill empty or placeholder fields from the structured tag line."""
        try:
            tags = parse_tags(transcript)
        except Exception as e:
            logger.error("structured_backfill_error", error=str(e))
            return result

        updates: dict[str, Any] = {}
        for key, value in tags.items():
            current = getattr(result, key)
            if not current or is_placeholder(current):
                updates[key] = value

        if not updates:
            return result

        logger.info("structured_backfill", fields=sorted(updates))
        details = {**result.extraction_details, "backfilled_fields": sorted(updates)}
        # model_copy skips validation, so re-validate to coerce enum values.
        return ExtractionResult.model_validate({
            **result.model_dump(),
            **updates,
            "extraction_details": details,
        })


_default_extractor = IntelligentExtractor()


def extract(transcript: Any) -> ExtractionResult:
    """Extract structured customer data from a call transcript."""
    return _default_extractor.extract(transcript)
