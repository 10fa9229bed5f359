"""
Record Service.

Persists the outcome of an inbound call: customer (found by phone or
created), project, call record, optional inspection appointment and
analytics events. The tenant project ID is resolved once at startup and
injected, never looked up per call.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

from src.config import Settings, get_settings
from src.db import DatabaseClient
from src.logging_config import get_logger
from src.schemas.extraction import CallType, ExtractionResult
from src.services.record_fields import extract_address_parts, parse_appointment_date, parse_name_parts

logger = get_logger(__name__)

CUSTOMERS_TABLE = "kfz_customers"
PROJECTS_TABLE = "kfz_projects"
PROJECT_CUSTOMERS_TABLE = "kfz_project_customers"
CALLS_TABLE = "kfz_calls"
APPOINTMENTS_TABLE = "kfz_appointments"
EVENTS_TABLE = "kfz_analytics_events"
TENANT_PROJECTS_TABLE = "tenant_projects"


class RecordCreationError(RuntimeError):
    """A required row could not be written."""


class TenantProjectNotFoundError(RuntimeError):
    """The tenant project could neither be found nor created."""


async def resolve_tenant_project_id(db: DatabaseClient, settings: Settings) -> str:
    """
    Look up the tenant project, creating it on first start.

    An explicit ``TENANT_PROJECT_ID`` setting short-circuits the lookup.
    """
    if settings.tenant_project_id:
        return settings.tenant_project_id

    existing = await db.find_one(TENANT_PROJECTS_TABLE, project_name=settings.tenant_project_name)
    if existing:
        logger.info("tenant_project_resolved", tenant_project_id=existing["id"])
        return existing["id"]

    created = await db.insert(TENANT_PROJECTS_TABLE, {"project_name": settings.tenant_project_name})
    if not created:
        raise TenantProjectNotFoundError(
            f"Tenant project '{settings.tenant_project_name}' not found and could not be created"
        )

    logger.info("tenant_project_created", tenant_project_id=created["id"])
    return created["id"]


class RecordService:
    """Writes customer, project, call and appointment rows for one call."""

    def __init__(
        self,
        db: DatabaseClient,
        tenant_project_id: str,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.db = db
        self.tenant_project_id = tenant_project_id
        self.settings = settings or get_settings()
        self._clock = clock or (lambda: datetime.now().astimezone())

    async def process_call(
        self,
        call_id: str,
        transcript: str,
        duration_seconds: int | None,
        extraction: ExtractionResult,
    ) -> dict[str, Any]:
        """
        Persist one processed call.

        Calls without a usable name and phone are still logged, as a
        partial call record, so a human can follow up.
        """
        if not extraction.has_contact:
            logger.warning("no_contact_data_extracted", call_id=call_id)
            await self.save_call_record(
                call_id, transcript, duration_seconds, extraction,
                call_purpose="unknown", call_outcome="partial",
            )
            return {
                "call_id": call_id,
                "extraction_attempted": True,
                "extraction_successful": False,
            }

        customer = await self.create_or_update_customer(extraction)
        project = await self.create_project(customer, extraction)

        await self.save_call_record(
            call_id, transcript, duration_seconds, extraction,
            customer_id=customer["id"],
            project_id=project["id"],
        )
        await self.log_event(
            "call_completed",
            project["id"],
            customer["id"],
            {
                "call_type": extraction.type.value,
                "duration_seconds": duration_seconds,
                "retell_call_id": call_id,
                "confidence_score": extraction.confidence_score,
            },
        )

        appointment = None
        if extraction.type == CallType.APPOINTMENT:
            appointment = await self.schedule_appointment(customer, project, extraction)
            if appointment:
                await self.log_event(
                    "appointment_scheduled",
                    project["id"],
                    customer["id"],
                    {
                        "appointment_date": appointment.get("scheduled_date"),
                        "appointment_type": appointment.get("appointment_type"),
                    },
                )
        elif extraction.type == CallType.CALLBACK:
            await self.log_event(
                "callback_requested",
                project["id"],
                customer["id"],
                {
                    "customer_phone": customer.get("phone"),
                    "customer_name": f"{customer.get('first_name', '')} {customer.get('last_name', '')}".strip(),
                },
            )

        logger.info(
            "call_records_created",
            call_id=call_id,
            customer_number=customer.get("customer_number"),
            project_number=project.get("project_number"),
            appointment_scheduled=appointment is not None,
        )

        return {
            "customer": customer.get("customer_number"),
            "project": project.get("project_number"),
            "type": extraction.type.value,
            "appointment_scheduled": appointment is not None,
            "extraction_method": extraction.extraction_details.get("method", "advanced"),
        }

    async def create_or_update_customer(self, extraction: ExtractionResult) -> dict[str, Any]:
        first_name, last_name = parse_name_parts(extraction.name)
        address = extract_address_parts(extraction.address, self.settings.default_city)

        existing = await self.db.find_one(
            CUSTOMERS_TABLE,
            phone=extraction.phone,
            tenant_project_id=self.tenant_project_id,
        )
        if existing:
            logger.info("customer_found", customer_number=existing.get("customer_number"))
            if extraction.address and not existing.get("street"):
                await self.db.update(CUSTOMERS_TABLE, existing["id"], {
                    "street": address.street,
                    "city": address.city,
                    "postal_code": address.postal_code,
                })
            return existing

        customer_number = await self._next_number(CUSTOMERS_TABLE, "customer_number", "K")
        customer = await self.db.insert(CUSTOMERS_TABLE, {
            "tenant_project_id": self.tenant_project_id,
            "customer_number": customer_number,
            "first_name": first_name,
            "last_name": last_name,
            "phone": extraction.phone,
            "street": address.street,
            "city": address.city,
            "postal_code": address.postal_code,
            "source": self.settings.record_source,
            "status": "active",
        })
        if not customer:
            raise RecordCreationError(f"Failed to create customer {customer_number}")

        logger.info("customer_created", customer_number=customer_number)
        return customer

    async def create_project(self, customer: dict[str, Any], extraction: ExtractionResult) -> dict[str, Any]:
        project_number = await self._next_number(PROJECTS_TABLE, "project_number", "P")
        customer_name = f"{customer.get('first_name', '')} {customer.get('last_name', '')}".strip()

        project = await self.db.insert(PROJECTS_TABLE, {
            "tenant_project_id": self.tenant_project_id,
            "project_number": project_number,
            "name": f"KFZ-Schaden {customer_name}",
            "status": "active",
            "priority": "normal",
            "storage_path": f"/{self.settings.tenant_project_name}/{project_number}/",
            "metadata": {
                "created_from": self.settings.record_source,
                "initial_contact": extraction.model_dump(mode="json"),
                "agent_version": self.settings.agent_version,
                "extraction_method": extraction.extraction_details.get("method", "advanced"),
                "confidence_score": extraction.confidence_score,
            },
        })
        if not project:
            raise RecordCreationError(f"Failed to create project {project_number}")

        link = await self.db.insert(PROJECT_CUSTOMERS_TABLE, {
            "project_id": project["id"],
            "customer_id": customer["id"],
            "role": "primary",
        })
        if not link:
            logger.warning("project_customer_link_failed", project_number=project_number)

        logger.info("project_created", project_number=project_number)
        return project

    async def save_call_record(
        self,
        call_id: str,
        transcript: str,
        duration_seconds: int | None,
        extraction: ExtractionResult,
        customer_id: str | None = None,
        project_id: str | None = None,
        call_purpose: str | None = None,
        call_outcome: str = "successful",
    ) -> dict[str, Any]:
        if call_purpose is None:
            call_purpose = "callback_request" if extraction.type == CallType.CALLBACK else "appointment_booking"

        record = await self.db.insert(CALLS_TABLE, {
            "tenant_project_id": self.tenant_project_id,
            "project_id": project_id,
            "customer_id": customer_id,
            "retell_call_id": call_id,
            "call_type": "inbound",
            "duration_seconds": duration_seconds,
            "transcript": transcript,
            "extracted_data": extraction.model_dump(mode="json"),
            "call_purpose": call_purpose,
            "call_outcome": call_outcome,
            "agent_version": self.settings.agent_version,
        })
        if not record:
            raise RecordCreationError(f"Failed to save call record for {call_id}")
        return record

    async def schedule_appointment(
        self,
        customer: dict[str, Any],
        project: dict[str, Any],
        extraction: ExtractionResult,
    ) -> Optional[dict[str, Any]]:
        """Book an on-site inspection; needs an appointment phrase."""
        if not extraction.appointment or extraction.type != CallType.APPOINTMENT:
            return None

        scheduled = parse_appointment_date(
            extraction.appointment,
            now=self._clock(),
            default_hour=self.settings.default_appointment_hour,
            earliest_hour=self.settings.business_hours_start,
            latest_hour=self.settings.business_hours_end,
        )
        address = extract_address_parts(extraction.address, self.settings.default_city)

        appointment = await self.db.insert(APPOINTMENTS_TABLE, {
            "tenant_project_id": self.tenant_project_id,
            "project_id": project["id"],
            "customer_id": customer["id"],
            "appointment_type": "inspection",
            "scheduled_date": scheduled.isoformat() if scheduled else None,
            "address": {
                "street": address.street,
                "city": address.city,
                "full_address": extraction.address,
            },
            "status": "scheduled",
        })
        if appointment:
            logger.info("appointment_scheduled", phrase=extraction.appointment, scheduled_date=appointment.get("scheduled_date"))
        return appointment

    async def log_event(
        self,
        event_type: str,
        project_id: str | None,
        customer_id: str | None,
        properties: dict[str, Any] | None = None,
    ) -> None:
        event = await self.db.insert(EVENTS_TABLE, {
            "tenant_project_id": self.tenant_project_id,
            "event_type": event_type,
            "event_category": event_type.split("_")[0],
            "project_id": project_id,
            "customer_id": customer_id,
            "properties": properties or {},
        })
        if not event:
            logger.warning("analytics_event_not_saved", event_type=event_type)

    async def _next_number(self, table: str, column: str, letter: str) -> str:
        """Next sequential number like ``K-2026-007`` for the current year."""
        prefix = f"{letter}-{self._clock().year}-"
        count = await self.db.count_prefixed(table, column, prefix)
        return f"{prefix}{count + 1:03d}"
