"""
Helpers that turn extracted values into datastore columns.

Name splitting, address decomposition and resolving a spoken appointment
phrase ("morgen um 14 Uhr") into a concrete datetime.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

WEEKDAYS = {
    "montag": 0,
    "dienstag": 1,
    "mittwoch": 2,
    "donnerstag": 3,
    "freitag": 4,
}

_POSTAL_CODE_RE = re.compile(r"\b(\d{5})\b")
_TIME_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(?:uhr)?", re.IGNORECASE)


@dataclass(frozen=True)
class AddressParts:
    street: Optional[str]
    city: str
    postal_code: Optional[str] = None


def parse_name_parts(full_name: str | None) -> tuple[str, str]:
    """Split a full name into (first_name, last_name)."""
    if not full_name:
        return "", ""
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def extract_address_parts(address: str | None, default_city: str) -> AddressParts:
    if not address:
        return AddressParts(street=None, city=default_city)

    parts = [p.strip() for p in address.split(",")]
    postal = _POSTAL_CODE_RE.search(address)
    postal_code = postal.group(1) if postal else None

    city = default_city
    if postal_code:
        after_postal = address[postal.end():].strip()
        if after_postal:
            city = re.split(r"[,\n]", after_postal)[0].strip() or default_city
    elif len(parts) > 1 and parts[-1]:
        city = parts[-1]

    street = parts[0] or None
    if street and postal_code and postal_code in street:
        # "Hauptstraße 12 33602 Bielefeld" without a comma
        street = street[:street.index(postal_code)].strip(" ,") or None

    return AddressParts(street=street, city=city, postal_code=postal_code)


def next_weekday(start: date, weekday: int) -> date:
    """Next date falling on ``weekday`` (Monday=0), a full week ahead if today."""
    days_ahead = (weekday - start.weekday()) % 7
    return start + timedelta(days=days_ahead or 7)


def next_business_day(start: date) -> date:
    day = start + timedelta(days=1)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


def parse_appointment_date(
    phrase: str | None,
    now: datetime | None = None,
    default_hour: int = 10,
    earliest_hour: int = 8,
    latest_hour: int = 18,
) -> Optional[datetime]:
    """
    Resolve a spoken appointment phrase into a datetime.

    The hour comes from the first "14", "14:30" or "14 Uhr" in the phrase
    and falls back to ``default_hour`` when missing or outside business
    hours. Without a recognised day reference the next business day is used.
    """
    if not phrase:
        return None

    now = now or datetime.now().astimezone()
    text = phrase.lower()

    time_match = _TIME_RE.search(phrase)
    hour = int(time_match.group(1)) if time_match else default_hour
    minute = int(time_match.group(2)) if time_match and time_match.group(2) else 0
    if hour < earliest_hour or hour > latest_hour or minute > 59:
        hour, minute = default_hour, 0

    target = now.date()
    if "übermorgen" in text:
        target += timedelta(days=2)
    elif "morgen" in text:
        target += timedelta(days=1)
    elif "heute" in text:
        if hour <= now.hour:
            hour, minute = max(now.hour + 2, default_hour), 0
        if hour > latest_hour:
            target, hour = next_business_day(target), default_hour
    else:
        weekday = next((day for name, day in WEEKDAYS.items() if name in text), None)
        if weekday is not None:
            target = next_weekday(target, weekday)
        else:
            target = next_business_day(target)

    return now.replace(
        year=target.year,
        month=target.month,
        day=target.day,
        hour=hour,
        minute=minute,
        second=0,
        microsecond=0,
    )
