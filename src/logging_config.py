"""
Structured logging for the call intake service.

structlog renders JSON lines in production and a colored console view in
development. Entries written while a request or a webhook call is being
handled carry its ``trace_id`` and ``call_id``.

Usage:
    from src.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("extraction_started", transcript_length=812)
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

import structlog

from src.config import get_settings

trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")
call_id_var: ContextVar[str] = ContextVar("call_id", default="")

# Transcripts hold customer data; log only their head.
MAX_LOGGED_TEXT = 120
_TEXT_KEYS = ("transcript", "phrase")


def _add_correlation_ids(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, var in (("trace_id", trace_id_var), ("call_id", call_id_var)):
        value = var.get()
        if value:
            event_dict.setdefault(key, value)
    return event_dict


def _truncate_text(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in _TEXT_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_LOGGED_TEXT:
            event_dict[key] = value[:MAX_LOGGED_TEXT] + "…"
    return event_dict


def generate_trace_id() -> str:
    """Short random ID for correlating one request's log lines."""
    return uuid.uuid4().hex[:12]


@contextmanager
def call_context(call_id: str) -> Iterator[None]:
    """Tag every entry logged inside the block with ``call_id``."""
    token = call_id_var.set(call_id)
    try:
        yield
    finally:
        call_id_var.reset(token)


def setup_logging() -> None:
    """
    Configure structlog and route stdlib logging through it.

    - **Production**: one JSON object per line on stdout.
    - **Development**: colored console output.
    """
    settings = get_settings()

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_correlation_ids,
        _truncate_text,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        # Umlauts stay readable in the aggregated logs.
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # uvicorn, supabase and httpx log through the stdlib.
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    for noisy in ("httpx", "httpcore", "hpack", "postgrest", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
