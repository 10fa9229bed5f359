"""
Field Validators.

Pure predicates and normalizers that decide whether a candidate substring
is acceptable for a given field. Shared by the extraction strategies.
"""

from __future__ import annotations

import re

# Tokens that look like names to the patterns but never are.
INVALID_NAMES = frozenset({
    "heute", "morgen", "termin", "unfall", "auto", "fahrzeug", "schaden",
    "herr", "frau", "hallo", "guten tag", "ja", "nein", "okay", "gut",
    "telefon", "nummer", "adresse", "straße", "haus", "danke", "bitte",
})

# Known domestic area codes (Berlin, Hamburg, Frankfurt, Munich, Bielefeld,
# Düsseldorf, Cologne, Dortmund).
VALID_AREA_CODES = ("030", "040", "069", "089", "0521", "0211", "0221", "0231")

STREET_TYPES = r"(?:straße|strasse|str\.?|weg|platz|allee|ring|damm|gasse)"

_DIGIT_RE = re.compile(r"\d")
_LETTER_RE = re.compile(r"[a-zäöüß]", re.IGNORECASE)
_PHONE_STRIP_RE = re.compile(r"[^\d+]")
_DOMESTIC_PHONE_RE = re.compile(r"^0[1-9]\d{8,10}$")
_STREET_TYPE_RE = re.compile(STREET_TYPES, re.IGNORECASE)


def is_valid_name(name: str | None) -> bool:
    """Return True if ``name`` is a plausible personal name."""
    if not name or len(name) < 2 or len(name) > 50:
        return False
    if name.lower() in INVALID_NAMES:
        return False
    if _DIGIT_RE.search(name):
        return False
    return bool(_LETTER_RE.search(name))


def normalize_phone_number(phone: str) -> str:
    """
    Reshape a raw phone string into local domestic form.

    Keeps digits and ``+``, rewrites ``+49`` to ``0`` and makes sure the
    result starts with ``0``. Never fails.
    """
    normalized = _PHONE_STRIP_RE.sub("", phone or "")

    if normalized.startswith("+49"):
        normalized = "0" + normalized[3:]

    if not normalized.startswith("0"):
        normalized = "0" + normalized

    return normalized


def is_valid_german_phone(phone: str | None) -> bool:
    if not phone:
        return False

    normalized = normalize_phone_number(phone)

    if len(normalized) < 10 or len(normalized) > 12:
        return False
    if not normalized.startswith("0"):
        return False

    if normalized.startswith(VALID_AREA_CODES):
        return True
    return bool(_DOMESTIC_PHONE_RE.match(normalized))


def clean_address(address: str) -> str:
    """Collapse whitespace and stray commas in a matched address."""
    cleaned = re.sub(r"\s+", " ", address.strip())
    cleaned = re.sub(r",\s*,", ",", cleaned)
    cleaned = re.sub(r"^\s*,\s*", "", cleaned)
    return re.sub(r"\s*,\s*$", "", cleaned)


def is_valid_address(address: str | None) -> bool:
    """An address needs a street-type token and a house number."""
    if not address or len(address) < 5:
        return False
    return bool(_STREET_TYPE_RE.search(address)) and bool(_DIGIT_RE.search(address))
