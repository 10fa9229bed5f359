from src.logging_config import (
    MAX_LOGGED_TEXT,
    _add_correlation_ids,
    _truncate_text,
    call_context,
    call_id_var,
    trace_id_var,
)


def test_call_context_binds_and_resets():
    with call_context("call-9"):
        assert call_id_var.get() == "call-9"
        event = _add_correlation_ids(None, "info", {"event": "x"})
        assert event["call_id"] == "call-9"

    assert call_id_var.get() == ""


def test_explicit_ids_are_not_overwritten():
    token = trace_id_var.set("req-1")
    try:
        event = _add_correlation_ids(None, "info", {"event": "x", "trace_id": "own"})
    finally:
        trace_id_var.reset(token)

    assert event["trace_id"] == "own"


def test_long_transcripts_are_truncated():
    event = _truncate_text(None, "info", {"transcript": "a" * 500, "other": "b" * 500})

    assert len(event["transcript"]) == MAX_LOGGED_TEXT + 1
    assert len(event["other"]) == 500
