"""
Data models for transcript extraction results.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class CallType(str, Enum):
    """Inferred purpose of an inbound call."""
    APPOINTMENT = "APPOINTMENT"
    CALLBACK = "CALLBACK"
    QUOTE = "QUOTE"


class ExtractionResult(BaseModel):
    """Structured customer data extracted from one call transcript."""
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    appointment: Optional[str] = None  # Raw phrase, date resolution happens downstream
    type: CallType = CallType.CALLBACK
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)
    extraction_details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def failure(cls, **details: Any) -> "ExtractionResult":
        """Degenerate all-null record carrying a failure marker."""
        return cls(confidence_score=0.0, extraction_details=details)

    @property
    def has_contact(self) -> bool:
        return bool(self.name and self.phone)
