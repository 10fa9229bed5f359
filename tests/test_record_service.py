"""
Tests for the record service and tenant project resolution.
"""

import pytest

from src.config import Settings
from src.schemas.extraction import CallType, ExtractionResult
from src.services.record_service import (
    APPOINTMENTS_TABLE,
    CALLS_TABLE,
    CUSTOMERS_TABLE,
    EVENTS_TABLE,
    PROJECT_CUSTOMERS_TABLE,
    PROJECTS_TABLE,
    TENANT_PROJECTS_TABLE,
    RecordCreationError,
    RecordService,
    TenantProjectNotFoundError,
    resolve_tenant_project_id,
)

TENANT = "tenant-1"


@pytest.fixture
def service(fake_db, settings, clock):
    return RecordService(fake_db, TENANT, settings, clock=clock)


def _appointment() -> ExtractionResult:
    return ExtractionResult(
        name="Anna Schmidt",
        phone="0521445566",
        address="Hauptstraße 12, 33602 Bielefeld",
        appointment="morgen um 14 Uhr",
        type=CallType.APPOINTMENT,
        confidence_score=0.9,
    )


def _event_types(fake_db):
    return [event["event_type"] for event in fake_db.tables[EVENTS_TABLE]]


class TestProcessCall:

    async def test_appointment_call_creates_all_records(self, service, fake_db):
        summary = await service.process_call("call-1", "transcript", 95, _appointment())

        assert summary == {
            "customer": "K-2026-001",
            "project": "P-2026-001",
            "type": "APPOINTMENT",
            "appointment_scheduled": True,
            "extraction_method": "advanced",
        }

        customer = fake_db.tables[CUSTOMERS_TABLE][0]
        assert customer["first_name"] == "Anna"
        assert customer["last_name"] == "Schmidt"
        assert customer["street"] == "Hauptstraße 12"
        assert customer["postal_code"] == "33602"
        assert customer["tenant_project_id"] == TENANT

        project = fake_db.tables[PROJECTS_TABLE][0]
        assert project["name"] == "KFZ-Schaden Anna Schmidt"
        assert project["metadata"]["initial_contact"]["type"] == "APPOINTMENT"

        link = fake_db.tables[PROJECT_CUSTOMERS_TABLE][0]
        assert link == {"id": link["id"], "project_id": project["id"], "customer_id": customer["id"], "role": "primary"}

        call = fake_db.tables[CALLS_TABLE][0]
        assert call["retell_call_id"] == "call-1"
        assert call["call_purpose"] == "appointment_booking"
        assert call["call_outcome"] == "successful"
        assert call["duration_seconds"] == 95

        appointment = fake_db.tables[APPOINTMENTS_TABLE][0]
        assert appointment["scheduled_date"] == "2026-10-15T14:00:00+00:00"
        assert appointment["address"]["full_address"] == "Hauptstraße 12, 33602 Bielefeld"

        assert _event_types(fake_db) == ["call_completed", "appointment_scheduled"]

    async def test_callback_call(self, service, fake_db):
        extraction = ExtractionResult(
            name="Herr Klein",
            phone="0301234567",
            confidence_score=0.6,
            extraction_details={"method": "standard_natural"},
        )

        summary = await service.process_call("call-2", "transcript", 30, extraction)

        assert summary["appointment_scheduled"] is False
        assert summary["extraction_method"] == "standard_natural"
        assert fake_db.tables[CALLS_TABLE][0]["call_purpose"] == "callback_request"
        assert fake_db.tables[APPOINTMENTS_TABLE] == []
        assert _event_types(fake_db) == ["call_completed", "callback_requested"]

    async def test_appointment_without_phrase_is_not_scheduled(self, service, fake_db):
        extraction = _appointment().model_copy(update={"appointment": None})

        summary = await service.process_call("call-3", "transcript", 30, extraction)

        assert summary["appointment_scheduled"] is False
        assert fake_db.tables[APPOINTMENTS_TABLE] == []

    async def test_missing_contact_saves_partial_call(self, service, fake_db):
        extraction = ExtractionResult.failure(error="Invalid or empty transcript")

        summary = await service.process_call("call-4", "", None, extraction)

        assert summary == {"call_id": "call-4", "extraction_attempted": True, "extraction_successful": False}
        call = fake_db.tables[CALLS_TABLE][0]
        assert call["call_purpose"] == "unknown"
        assert call["call_outcome"] == "partial"
        assert call["customer_id"] is None
        assert fake_db.tables[CUSTOMERS_TABLE] == []


class TestCustomers:

    async def test_existing_customer_is_reused_and_address_backfilled(self, service, fake_db):
        existing = fake_db.seed(
            CUSTOMERS_TABLE,
            phone="0521445566",
            tenant_project_id=TENANT,
            customer_number="K-2025-004",
            street=None,
        )

        customer = await service.create_or_update_customer(_appointment())

        assert customer["id"] == existing["id"]
        assert len(fake_db.tables[CUSTOMERS_TABLE]) == 1
        assert existing["street"] == "Hauptstraße 12"
        assert existing["city"] == "Bielefeld"

    async def test_customer_of_other_tenant_is_not_reused(self, service, fake_db):
        fake_db.seed(CUSTOMERS_TABLE, phone="0521445566", tenant_project_id="other", customer_number="K-2026-001")

        customer = await service.create_or_update_customer(_appointment())

        assert customer["customer_number"] == "K-2026-002"
        assert len(fake_db.tables[CUSTOMERS_TABLE]) == 2

    async def test_numbers_continue_within_year(self, service, fake_db):
        fake_db.seed(PROJECTS_TABLE, project_number="P-2026-001")
        fake_db.seed(PROJECTS_TABLE, project_number="P-2026-002")
        fake_db.seed(PROJECTS_TABLE, project_number="P-2025-009")

        customer = await service.create_or_update_customer(_appointment())
        project = await service.create_project(customer, _appointment())

        assert project["project_number"] == "P-2026-003"

    async def test_insert_failure_raises(self, service, fake_db):
        fake_db.failing_tables.add(CUSTOMERS_TABLE)

        with pytest.raises(RecordCreationError):
            await service.process_call("call-5", "transcript", 10, _appointment())


class TestTenantProject:

    async def test_explicit_setting_wins(self, fake_db):
        settings = Settings(_env_file=None, tenant_project_id="pinned")

        assert await resolve_tenant_project_id(fake_db, settings) == "pinned"
        assert fake_db.tables[TENANT_PROJECTS_TABLE] == []

    async def test_existing_row(self, fake_db, settings):
        row = fake_db.seed(TENANT_PROJECTS_TABLE, project_name=settings.tenant_project_name)

        assert await resolve_tenant_project_id(fake_db, settings) == row["id"]

    async def test_created_when_missing(self, fake_db, settings):
        tenant_project_id = await resolve_tenant_project_id(fake_db, settings)

        assert fake_db.tables[TENANT_PROJECTS_TABLE][0]["id"] == tenant_project_id

    async def test_unresolvable(self, fake_db, settings):
        fake_db.failing_tables.add(TENANT_PROJECTS_TABLE)

        with pytest.raises(TenantProjectNotFoundError):
            await resolve_tenant_project_id(fake_db, settings)
