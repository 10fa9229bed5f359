"""
Natural Fallback Extraction.

Simpler, lower-precision strategy: loose patterns, a coarse inline name
filter and a digit-count floor for phone numbers. Only reports a hit when
both a name and a phone number were found.
"""

from __future__ import annotations

import re
from typing import Optional

from src.logging_config import get_logger
from src.schemas.extraction import CallType, ExtractionResult
from src.services.extraction_strategies import ExtractionStrategy
from src.services.field_validators import clean_address, is_valid_address, normalize_phone_number

logger = get_logger(__name__)

MIN_PHONE_DIGITS = 9

_NAME_PATTERNS = [
    re.compile(
        r"(?:name ist|ich heiße|ich bin|mein name ist)\s+([a-zäöüß\s\-]{2,50}?)"
        r"(?:\.|,|$|\s+(?:und|meine|telefon|mein)\b)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:hallo|guten tag),?\s*(?:ich bin\s+|mein name ist\s+)?([a-zäöüß\s\-]{2,50}?)"
        r"(?:\.|,|$|\s+(?:und|meine|telefon)\b)",
        re.IGNORECASE,
    ),
]

# Digits and separators; a separator does not continue into a lone one- or
# two-digit group followed by a word ("0171 1234567 2 Autos").
_PHONE_BODY = r"((?:\+49|0)[\s\-]?(?:\d|[\s\-/](?!\d{1,2}\s+[^\W\d_])){8,})"

_PHONE_PATTERNS = [
    re.compile(
        r"(?:telefonnummer|telefon|nummer|erreichbar)\s*(?:(?:ist|unter|:)\s*)?" + _PHONE_BODY,
        re.IGNORECASE,
    ),
    re.compile(_PHONE_BODY),
]

_ADDRESS_PATTERNS = [
    re.compile(
        r"(?:adresse|wohne|wohnhaft)\s+(?:ist\s+|in\s+|an\s+|bei\s+)?(?:der\s+|dem\s+)?"
        r"((?:[a-zäöüß\-]+\s)?[a-zäöüß\-]*(?:straße|str\.|weg|platz|allee)\s*\d+[a-z]?)",
        re.IGNORECASE,
    ),
]

_PHONE_SEPARATORS = re.compile(r"[\s\-/]")


class NaturalExtractionStrategy(ExtractionStrategy):
    """Single-pattern-per-field fallback used behind the advanced strategy."""

    name = "natural"

    # Coarse filter for obvious non-names.
    _not_names = {"herr", "frau", "hallo", "ja", "nein", "okay", "termin"}

    def extract(self, transcript: str) -> Optional[ExtractionResult]:
        if not isinstance(transcript, str) or not transcript.strip():
            return None

        name = self._find_name(transcript)
        phone = self._find_phone(transcript)
        address = self._find_address(transcript)

        text = transcript.lower()
        if "termin" in text or "besichtigung" in text:
            call_type = CallType.APPOINTMENT
        elif "kostenvoranschlag" in text or "angebot" in text:
            call_type = CallType.QUOTE
        else:
            call_type = CallType.CALLBACK

        if not (name and phone):
            logger.debug("natural_extraction_miss", name_found=bool(name), phone_found=bool(phone))
            return None

        return ExtractionResult(name=name, phone=phone, address=address, type=call_type)

    def _find_name(self, transcript: str) -> Optional[str]:
        for pattern in _NAME_PATTERNS:
            match = pattern.search(transcript)
            if not match:
                continue
            name = match.group(1).strip()
            if len(name) > 2 and not any(ch.isdigit() for ch in name) and name.lower() not in self._not_names:
                return name
        return None

    def _find_phone(self, transcript: str) -> Optional[str]:
        for pattern in _PHONE_PATTERNS:
            match = pattern.search(transcript)
            if not match:
                continue
            digits = _PHONE_SEPARATORS.sub("", match.group(1))
            if len(digits) >= MIN_PHONE_DIGITS:
                return normalize_phone_number(digits)
        return None

    def _find_address(self, transcript: str) -> Optional[str]:
        for pattern in _ADDRESS_PATTERNS:
            match = pattern.search(transcript)
            if not match:
                continue
            address = clean_address(match.group(1))
            if is_valid_address(address):
                return address
        return None
