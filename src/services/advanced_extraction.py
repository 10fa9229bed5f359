"""
Advanced Pattern Extraction.

Highest-precision strategy. Each field has an ordered list of weighted
pattern rules; the first rule whose capture also passes the field
validator wins. Rule order encodes precedence: contextual patterns come
first, generic ones last.

The call intent is scored from keyword hits plus structural evidence
(an extracted address or appointment phrase), and the aggregate
confidence is penalised when only few core fields were found.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from src.logging_config import get_logger
from src.schemas.extraction import CallType, ExtractionResult
from src.services.extraction_strategies import ExtractionStrategy, PatternRule
from src.services.field_validators import (
    STREET_TYPES,
    clean_address,
    is_valid_address,
    is_valid_german_phone,
    is_valid_name,
    normalize_phone_number,
)

logger = get_logger(__name__)

# Results at or below this aggregate confidence are treated as a miss.
MIN_CONFIDENCE = 0.3
# Number of core fields (name, phone, address) used for normalisation.
CORE_FIELD_COUNT = 3

ADDRESS_BONUS = 3
APPOINTMENT_BONUS = 2

_FLAGS = re.IGNORECASE

# One to three name-like words, matched lazily.
_NAME = r"([a-zäöüß\-]+(?:\s+[a-zäöüß\-]+){0,2}?)"
_NAME_END = r"(?:\.|,|!|\?|$|\s+(?:und|meine|telefon|mein)\b)"

# Street with house number and optional postal code/city. A separate
# street-type word ("Berliner Straße") needs a preceding word that is not
# an article or preposition; compounds ("Hauptstraße") need nothing.
_ADDRESS = (
    r"\b((?:(?!(?:der|die|das|dem|den|in|im|an|ist|und|zu|nach|bei)\s)[a-zäöüß\-]+\s+"
    + STREET_TYPES
    + r"|[a-zäöüß\-]*"
    + STREET_TYPES
    + r")\s*\d+(?:\s?[a-z]\b)?(?:,?\s*\d{5}\b(?:\s+[a-zäöüß\-]+)?)?)"
)

_WEEKDAYS = r"montag|dienstag|mittwoch|donnerstag|freitag|samstag"
_TIME_WORDS = r"morgen|übermorgen|heute|nächste woche|" + _WEEKDAYS
_PHRASE_TAIL = r"(?:\s+(?:\d{1,2}(?::\d{2})?|[a-zäöüß]+)){0,3}"


def _spoken_digits(match: re.Match[str]) -> str:
    return "0" + match.group(1) + match.group(2)


def _whole_match(match: re.Match[str]) -> str:
    return match.group(0)


NAME_RULES: list[PatternRule] = [
    PatternRule(
        re.compile(r"(?:name ist|ich heiße|ich bin|mein name ist)\s+" + _NAME + _NAME_END, _FLAGS),
        0.9,
        "Direct name introduction",
    ),
    PatternRule(
        re.compile(r"(?:hier ist|hier spricht)\s+" + _NAME + r"(?:\.|,|!|$)", _FLAGS),
        0.85,
        "Phone introduction",
    ),
    PatternRule(
        re.compile(
            r"(?:hallo|guten tag),?\s*(?:ich bin\s+|mein name ist\s+)?"
            + _NAME
            + r"(?:\.|,|!|$|\s+(?:und|meine|telefon)\b)",
            _FLAGS,
        ),
        0.8,
        "Greeting with name",
    ),
    # Case-sensitive: both parts must be capitalised ("von Peter Maier").
    PatternRule(
        re.compile(r"\bvon\s+([A-ZÄÖÜ][a-zäöüß\-]+\s+[A-ZÄÖÜ][a-zäöüß\-]+)\b"),
        0.7,
        "From name pattern",
    ),
]

PHONE_RULES: list[PatternRule] = [
    PatternRule(
        re.compile(
            r"(?:telefonnummer|telefon|nummer|erreichbar|anrufen|melden)"
            r"(?:\s*(?:ist|lautet|unter|:))*\s*((?:\+49|0)[0-9\s\-/]{8,})",
            _FLAGS,
        ),
        0.95,
        "Direct phone mention",
    ),
    PatternRule(
        re.compile(r"\b(?:null|0)\s*([0-9]{3,4})\s*([0-9]{6,8})\b", _FLAGS),
        0.8,
        "Spoken digit format",
        capture=_spoken_digits,
    ),
    PatternRule(
        re.compile(r"(?<!\d)((?:\+49|0)[0-9\s\-/]{8,})"),
        0.7,
        "Phone number pattern",
    ),
]

ADDRESS_RULES: list[PatternRule] = [
    PatternRule(
        re.compile(
            r"(?:adresse|wohne|wohnhaft|zuhause|ich bin|bei mir|zu mir)\b[^.\d]{0,40}?" + _ADDRESS,
            _FLAGS,
        ),
        0.9,
        "Direct address mention",
    ),
    PatternRule(
        re.compile(
            r"(?:zur besichtigung|vor ort|kommen sie|fahren sie|besuchen sie)\b[^.\d]{0,40}?" + _ADDRESS,
            _FLAGS,
        ),
        0.85,
        "Appointment location",
    ),
    PatternRule(re.compile(_ADDRESS, _FLAGS), 0.75, "Standard German address format"),
]

APPOINTMENT_RULES: list[PatternRule] = [
    PatternRule(
        re.compile(
            r"(?:termin|besichtigung|vor ort|begutachtung)[\s\w]{0,60}?"
            r"(?:\bfür\b|\bam\b|\bum\b|" + _TIME_WORDS + r")" + _PHRASE_TAIL,
            _FLAGS,
        ),
        0.9,
        "Direct appointment request",
        capture=_whole_match,
    ),
    PatternRule(
        re.compile(
            r"(?:" + _TIME_WORDS + r")(?:\s+\w+){0,3}?\s+(?:termin|besichtigung|begutachtung)",
            _FLAGS,
        ),
        0.85,
        "Time reference before request",
        capture=_whole_match,
    ),
    PatternRule(
        re.compile(
            r"(?:kommen sie|fahren sie|besuchen sie|schauen sie)[\s\w]{0,60}?(?:vorbei|zu mir|bei mir)",
            _FLAGS,
        ),
        0.8,
        "Visit request",
        capture=_whole_match,
    ),
]

# Declaration order is the tie-break priority.
TYPE_INDICATORS: dict[CallType, tuple[str, ...]] = {
    CallType.APPOINTMENT: (
        "termin", "besichtigung", "kommen sie", "vor ort", "begutachtung",
        "schauen sie", "fahren sie", "besuchen sie", "bei mir", "zu mir",
    ),
    CallType.CALLBACK: (
        "rückruf", "zurückrufen", "anrufen", "melden sie sich", "nicht parat",
        "später", "beratung", "sprechen sie", "kontakt",
    ),
    CallType.QUOTE: (
        "kostenvoranschlag", "angebot", "preis", "kosten", "was kostet",
        "kalkulation", "schätzung",
    ),
}


def first_valid(
    rules: list[PatternRule],
    transcript: str,
    validate: Callable[[str], bool],
    transform: Callable[[str], str] = str.strip,
) -> tuple[Optional[str], Optional[PatternRule]]:
    """Return the first candidate that passes ``validate``, with its rule."""
    for rule in rules:
        candidate = rule.candidate(transcript)
        if candidate is None:
            continue
        value = transform(candidate)
        if validate(value):
            return value, rule
    return None, None


def classify_call_type(
    transcript: str,
    has_address: bool = False,
    has_appointment: bool = False,
) -> CallType:
    """Score each intent by keyword hits; strictly highest wins."""
    text = transcript.lower()
    scores = {
        call_type: sum(1 for keyword in keywords if keyword in text)
        for call_type, keywords in TYPE_INDICATORS.items()
    }
    if has_address:
        scores[CallType.APPOINTMENT] += ADDRESS_BONUS
    if has_appointment:
        scores[CallType.APPOINTMENT] += APPOINTMENT_BONUS

    best = max(scores.values())
    if best <= 0:
        return CallType.CALLBACK
    return next(call_type for call_type, score in scores.items() if score == best)


def aggregate_confidence(field_confidences: list[float], fields_found: int) -> float:
    """
    Average the matched weights over the expected core fields, then scale
    by the share of core fields actually populated.
    """
    base = sum(field_confidences) / CORE_FIELD_COUNT
    return min(1.0, base * (fields_found / CORE_FIELD_COUNT))


class AdvancedExtractionStrategy(ExtractionStrategy):
    """Weighted multi-pattern extraction with confidence scoring."""

    name = "advanced"

    def extract(self, transcript: str) -> Optional[ExtractionResult]:
        if not isinstance(transcript, str) or not transcript.strip():
            return None

        details: dict[str, object] = {}
        confidences: list[float] = []

        name, rule = first_valid(NAME_RULES, transcript, is_valid_name)
        if rule:
            self._record(details, confidences, "name", rule)

        phone, rule = first_valid(
            PHONE_RULES, transcript, is_valid_german_phone, transform=normalize_phone_number
        )
        if rule:
            self._record(details, confidences, "phone", rule)

        address, rule = first_valid(
            ADDRESS_RULES, transcript, is_valid_address, transform=clean_address
        )
        if rule:
            self._record(details, confidences, "address", rule)

        # The appointment phrase is structural evidence only; it does not
        # count towards the aggregate confidence.
        appointment, rule = first_valid(APPOINTMENT_RULES, transcript, bool)
        if rule:
            details["appointment_method"] = rule.method
            details["appointment_confidence"] = rule.confidence

        call_type = classify_call_type(
            transcript,
            has_address=address is not None,
            has_appointment=appointment is not None,
        )

        fields_found = sum(1 for value in (name, phone, address) if value)
        confidence = aggregate_confidence(confidences, fields_found)

        logger.debug(
            "advanced_extraction_complete",
            confidence=round(confidence, 3),
            call_type=call_type.value,
            fields_found=fields_found,
        )

        if confidence <= MIN_CONFIDENCE:
            return None

        return ExtractionResult(
            name=name,
            phone=phone,
            address=address,
            appointment=appointment,
            type=call_type,
            confidence_score=confidence,
            extraction_details=details,
        )

    @staticmethod
    def _record(
        details: dict[str, object],
        confidences: list[float],
        field_name: str,
        rule: PatternRule,
    ) -> None:
        details[f"{field_name}_method"] = rule.method
        details[f"{field_name}_confidence"] = rule.confidence
        confidences.append(rule.confidence)
