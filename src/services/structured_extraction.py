"""
Structured-Tag Extraction.

The voice agent can be instructed to speak a machine-readable summary
line, e.g.::

    DATENERFASSUNG: Name=[Peter Lustig] Telefon=[05211234567] Typ=APPOINTMENT

This strategy pulls the bracketed values out of that line. Values are
taken as-is apart from the address, which must look like a street
address. Fields the agent reports as ``Nicht erfasst`` count as missing.
"""

from __future__ import annotations

import re
from typing import Optional

from src.schemas.extraction import CallType, ExtractionResult
from src.services.extraction_strategies import ExtractionStrategy
from src.services.field_validators import clean_address, is_valid_address

MARKER = "DATENERFASSUNG"

# Placeholder the voice agent uses for fields it could not capture.
NOT_CAPTURED = "Nicht erfasst"

_MARKER_LINE = re.compile(MARKER + r":\s*(.+)", re.IGNORECASE)

# Result field -> pattern on the marker line
TAG_PATTERNS: dict[str, re.Pattern[str]] = {
    "name": re.compile(r"Name=\[([^\]]{1,200})\]", re.IGNORECASE),
    "phone": re.compile(r"Telefon=\[([^\]]{1,200})\]", re.IGNORECASE),
    "address": re.compile(r"Adresse=\[([^\]]{1,200})\]", re.IGNORECASE),
    "appointment": re.compile(r"Termin=\[([^\]]{1,200})\]", re.IGNORECASE),
    "type": re.compile(r"Typ=\[?([A-Z]+)\]?", re.IGNORECASE),
}


def is_placeholder(value: Optional[str]) -> bool:
    return value is not None and value.strip().casefold() == NOT_CAPTURED.casefold()


def parse_tags(transcript: str) -> dict[str, str]:
    """Return the tagged values found on the marker line, keyed by field."""
    if not isinstance(transcript, str):
        return {}

    line = _MARKER_LINE.search(transcript)
    if not line:
        return {}

    tags: dict[str, str] = {}
    for key, pattern in TAG_PATTERNS.items():
        match = pattern.search(line.group(1))
        if not match:
            continue
        value = match.group(1).strip()
        if not value or is_placeholder(value):
            continue
        if key == "type":
            value = value.upper()
            if value not in CallType.__members__:
                continue
        elif key == "address":
            value = clean_address(value)
            if not is_valid_address(value):
                continue
        tags[key] = value
    return tags


class StructuredTagStrategy(ExtractionStrategy):
    """Reads the explicit ``DATENERFASSUNG`` tag line when present."""

    name = "structured"

    def extract(self, transcript: str) -> Optional[ExtractionResult]:
        tags = parse_tags(transcript)
        if not tags:
            return None
        return ExtractionResult(**tags)
