"""
Tests for name/address splitting and appointment date resolution.
"""

from datetime import date, datetime, timezone

import pytest

from src.services.record_fields import (
    extract_address_parts,
    next_business_day,
    next_weekday,
    parse_appointment_date,
    parse_name_parts,
)

WEDNESDAY_9AM = datetime(2026, 10, 14, 9, 0, tzinfo=timezone.utc)


class TestNameParts:

    @pytest.mark.parametrize(
        "full_name, expected",
        [
            ("Anna Schmidt", ("Anna", "Schmidt")),
            ("Anna Maria  Schmidt", ("Anna", "Maria Schmidt")),
            ("Anna", ("Anna", "")),
            ("", ("", "")),
            (None, ("", "")),
        ],
    )
    def test_split(self, full_name, expected):
        assert parse_name_parts(full_name) == expected


class TestAddressParts:

    def test_street_postal_city(self):
        parts = extract_address_parts("Hauptstraße 12, 33602 Bielefeld", "Bielefeld")
        assert parts.street == "Hauptstraße 12"
        assert parts.postal_code == "33602"
        assert parts.city == "Bielefeld"

    def test_postal_code_without_comma(self):
        parts = extract_address_parts("Hauptstraße 12 32052 Herford", "Bielefeld")
        assert parts.street == "Hauptstraße 12"
        assert parts.postal_code == "32052"
        assert parts.city == "Herford"

    def test_city_from_last_part(self):
        parts = extract_address_parts("Lindenweg 7, Gütersloh", "Bielefeld")
        assert parts.street == "Lindenweg 7"
        assert parts.city == "Gütersloh"
        assert parts.postal_code is None

    def test_default_city(self):
        assert extract_address_parts("Lindenweg 7", "Bielefeld").city == "Bielefeld"
        assert extract_address_parts(None, "Bielefeld").street is None


class TestAppointmentDate:

    def test_tomorrow_with_time(self):
        assert parse_appointment_date("morgen um 14 Uhr", now=WEDNESDAY_9AM) == datetime(
            2026, 10, 15, 14, 0, tzinfo=timezone.utc
        )

    def test_minutes(self):
        result = parse_appointment_date("Termin für morgen um 14:30", now=WEDNESDAY_9AM)
        assert (result.hour, result.minute) == (14, 30)

    def test_default_hour(self):
        result = parse_appointment_date("morgen einen Termin", now=WEDNESDAY_9AM)
        assert result == datetime(2026, 10, 15, 10, 0, tzinfo=timezone.utc)

    def test_out_of_hours_falls_back(self):
        result = parse_appointment_date("morgen um 22 Uhr", now=WEDNESDAY_9AM)
        assert result.hour == 10

    def test_today_in_the_past_is_moved_forward(self):
        result = parse_appointment_date("heute um 8", now=WEDNESDAY_9AM)
        assert result == datetime(2026, 10, 14, 11, 0, tzinfo=timezone.utc)

    def test_today_too_late_moves_to_next_business_day(self):
        evening = datetime(2026, 10, 14, 17, 0, tzinfo=timezone.utc)
        result = parse_appointment_date("heute", now=evening)
        assert result == datetime(2026, 10, 15, 10, 0, tzinfo=timezone.utc)

    def test_weekday(self):
        assert parse_appointment_date("am Montag", now=WEDNESDAY_9AM).date() == date(2026, 10, 19)

    def test_same_weekday_is_next_week(self):
        assert parse_appointment_date("Mittwoch", now=WEDNESDAY_9AM).date() == date(2026, 10, 21)

    def test_unrecognised_day_is_next_business_day(self):
        friday = datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc)
        assert parse_appointment_date("bald", now=friday).date() == date(2026, 10, 19)

    def test_empty_phrase(self):
        assert parse_appointment_date(None) is None
        assert parse_appointment_date("") is None


def test_next_weekday():
    assert next_weekday(date(2026, 10, 14), 4) == date(2026, 10, 16)
    assert next_weekday(date(2026, 10, 14), 2) == date(2026, 10, 21)


def test_next_business_day_skips_weekend():
    assert next_business_day(date(2026, 10, 16)) == date(2026, 10, 19)
    assert next_business_day(date(2026, 10, 17)) == date(2026, 10, 19)
