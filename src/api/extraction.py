"""
API Router: Transcript Extraction.

Runs the extraction pipeline on a posted transcript without persisting
anything. Useful for checking how a transcript will be interpreted.
"""

from __future__ import annotations

from fastapi import APIRouter

from src.schemas.call import ExtractRequest
from src.schemas.extraction import ExtractionResult
from src.services.data_extraction import extract

router = APIRouter(prefix="/api", tags=["Extraction"])


@router.post("/extract", response_model=ExtractionResult)
async def extract_transcript(body: ExtractRequest) -> ExtractionResult:
    return extract(body.transcript)
