"""
API Router: Call Webhook.

Receives completed-call deliveries from the voice platform, extracts the
customer data from the transcript and hands it to the record service.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from src.logging_config import call_context, get_logger
from src.schemas.call import CallWebhookPayload, CallWebhookResponse
from src.services.data_extraction import extract
from src.services.record_service import RecordService

logger = get_logger(__name__)
router = APIRouter(prefix="/api/retell", tags=["Webhook"])


def _get_record_service(request: Request) -> RecordService:
    service = getattr(request.app.state, "record_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Record service not initialized")
    return service


@router.post("/webhook", response_model=CallWebhookResponse)
async def call_webhook(body: CallWebhookPayload, request: Request) -> CallWebhookResponse:
    """Process a completed call: extract, then persist."""
    with call_context(body.call_id):
        logger.info(
            "webhook_received",
            call_status=body.call_status,
            duration_seconds=body.duration_seconds,
        )

        record_service = _get_record_service(request)
        extraction = extract(body.transcript)

        try:
            summary = await record_service.process_call(
                call_id=body.call_id,
                transcript=body.transcript or "",
                duration_seconds=body.duration_seconds,
                extraction=extraction,
            )
        except Exception as e:
            logger.error("webhook_processing_error", error=str(e))
            raise HTTPException(status_code=500, detail={"error": str(e), "call_id": body.call_id})

    if extraction.has_contact:
        message = "Webhook processed"
    else:
        message = "Call saved, no structured data found"

    return CallWebhookResponse(success=True, message=message, data=summary)
