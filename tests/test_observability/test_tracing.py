"""Tests for stage and generative call tracing."""

from unittest.mock import MagicMock, patch

import pytest

from src.generation import TextServiceError
from src.observability import attempt_scope, trace_llm_call, trace_stage


@pytest.fixture
def client():
    client = MagicMock()
    with patch("src.observability.tracing._client", client):
        yield client


def metadata_updates(trace):
    return [c.kwargs["metadata"] for c in trace.update.call_args_list if "metadata" in c.kwargs]


def test_stage_trace_carries_attempt_id(client):
    with attempt_scope("attempt-1"):
        with trace_stage("artwork", "work-1", {"generated_name": "Quiet Harbour"}) as span:
            span.completed(artwork_prompt="Misty harbour")

    kwargs = client.trace.call_args.kwargs
    assert kwargs["name"] == "stage_artwork"
    assert kwargs["input"] == {"work_id": "work-1", "generated_name": "Quiet Harbour"}
    assert kwargs["metadata"] == {"stage": "artwork", "attempt_id": "attempt-1"}

    trace = client.trace.return_value
    trace.update.assert_any_call(output={"artwork_prompt": "Misty harbour"})
    assert metadata_updates(trace)[-1] == {"outcome": "completed"}
    trace.end.assert_called_once()


def test_fallback_records_error_label(client):
    with trace_stage("title", "work-1") as span:
        span.fallback(TextServiceError("busy", kind="http", status_code=503))

    assert span.outcome == "fallback"
    trace = client.trace.return_value
    assert metadata_updates(trace)[-1] == {"outcome": "fallback", "reason": "HTTP 503"}


def test_discarded_outcome(client):
    with trace_stage("artwork", "work-1") as span:
        span.discarded("audio was cleared")

    trace = client.trace.return_value
    assert metadata_updates(trace)[-1] == {"outcome": "discarded", "reason": "audio was cleared"}


def test_failure_is_recorded_and_raised(client):
    with pytest.raises(TextServiceError):
        with trace_stage("augmentation", "work-1") as span:
            raise TextServiceError("slow", kind="timeout")

    assert span.outcome == "failed"
    updates = metadata_updates(client.trace.return_value)
    assert updates[0] == {"error": "slow"}
    assert updates[-1] == {"outcome": "failed", "reason": "Timeout"}


def test_span_without_client_keeps_outcome():
    with trace_stage("description", "work-1") as span:
        span.fallback(TextServiceError("", kind="empty"))

    assert (span.outcome, span.reason) == ("fallback", "Empty Response")


def test_attempt_scope_resets():
    with attempt_scope("attempt-1"):
        pass

    client = MagicMock()
    with patch("src.observability.tracing._client", client):
        with trace_stage("title", "work-1"):
            pass

    assert client.trace.call_args.kwargs["metadata"]["attempt_id"] is None


def test_llm_call_failure_label(client):
    with pytest.raises(TextServiceError):
        with attempt_scope("attempt-2"):
            with trace_llm_call("gemini/gemini-2.0-flash", "prompt", {"purpose": "title"}):
                raise TextServiceError("no key", kind="config")

    kwargs = client.trace.call_args.kwargs
    assert kwargs["metadata"]["attempt_id"] == "attempt-2"
    assert kwargs["metadata"]["purpose"] == "title"
    client.trace.return_value.update.assert_called_once_with(
        metadata={"error": "no key", "error_label": "Key Missing"}
    )


def test_llm_call_without_client_yields_none():
    with trace_llm_call("gemini/gemini-2.0-flash", "prompt") as trace:
        assert trace is None
