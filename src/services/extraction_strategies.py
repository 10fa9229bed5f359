"""
Extraction strategy contract.

Every strategy turns a transcript into an ``ExtractionResult`` or returns
``None`` when it has nothing usable. The orchestrator in
``src.services.data_extraction`` selects and orders them.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Pattern

from src.schemas.extraction import ExtractionResult


@dataclass(frozen=True)
class PatternRule:
    """A single weighted pattern for one field."""
    pattern: Pattern[str]
    confidence: float
    method: str
    # Turns the match into the candidate value; defaults to group 1.
    capture: Optional[Callable[[re.Match[str]], str]] = None

    def candidate(self, text: str) -> str | None:
        match = self.pattern.search(text)
        if not match:
            return None
        if self.capture is not None:
            return self.capture(match)
        return match.group(1)


class ExtractionStrategy(ABC):
    """Common interface for all transcript extraction strategies."""

    name: str = "base"

    @abstractmethod
    def extract(self, transcript: str) -> Optional[ExtractionResult]:
        """Return a result, or None when the strategy found nothing usable."""


def is_usable_transcript(transcript: object) -> bool:
    return isinstance(transcript, str) and bool(transcript.strip())
