"""
Data models for call webhook deliveries and responses.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class CallWebhookPayload(BaseModel):
    """Body posted by the voice platform when a call has ended."""
    call_id: str
    transcript: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    call_status: Optional[str] = None

    model_config = {"extra": "ignore"}


class CallWebhookResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


class ExtractRequest(BaseModel):
    transcript: str
