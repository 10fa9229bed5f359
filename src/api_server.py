"""
FastAPI API Server.

Receives call webhooks from the voice platform and exposes the transcript
extraction for manual checks.

Start with:
    uvicorn src.api_server:app --reload --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator

from dotenv import load_dotenv
load_dotenv(".env.local")

from fastapi import FastAPI

from src.api.extraction import router as extraction_router
from src.api.middleware import RequestIdMiddleware
from src.api.webhook import router as webhook_router
from src.config import get_settings
from src.db import get_db
from src.logging_config import get_logger, setup_logging
from src.services.record_service import RecordService, resolve_tenant_project_id

setup_logging()
logger = get_logger(__name__)

VERSION = "2.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Resolve the tenant project once and build the record service."""
    logger.info("api_server_starting")
    settings = get_settings()
    app.state.started_at = datetime.now(timezone.utc)
    app.state.record_service = None

    try:
        db = get_db()
        tenant_project_id = await resolve_tenant_project_id(db, settings)
        app.state.record_service = RecordService(db, tenant_project_id, settings)
        logger.info("record_service_ready", tenant_project_id=tenant_project_id)
    except Exception as e:
        # Extraction keeps working; the webhook answers 503 until restart.
        logger.error("record_service_init_failed", error=str(e))

    yield
    logger.info("api_server_stopping")


app = FastAPI(
    title="Call Intake Service API",
    description="Extracts customer and appointment data from inbound call transcripts",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(RequestIdMiddleware)

app.include_router(webhook_router)
app.include_router(extraction_router)


@app.get("/health", tags=["System"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "call-intake-service",
        "version": VERSION,
        "records_enabled": getattr(app.state, "record_service", None) is not None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/", tags=["System"])
async def root() -> dict[str, str]:
    """API root."""
    return {
        "service": "Call Intake Service",
        "version": VERSION,
        "docs": "/docs",
    }
