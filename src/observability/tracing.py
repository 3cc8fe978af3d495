"""
Opik tracing for stage runs and the generative calls inside them.

A stage trace carries the work id, the StageAttempt it runs for and how
the run ended: ``completed``, ``fallback`` (a labelled placeholder was
used because the text service failed), ``discarded`` (the work changed
underneath the stage) or ``failed``.

Usage:
    from src.observability import attempt_scope, trace_stage

    with attempt_scope(attempt.id):
        with trace_stage("artwork", work.id) as span:
            try:
                prompt = service.complete(...)
            except TextServiceError as e:
                span.fallback(e)
            span.completed(artwork_prompt=prompt)

Without OPIK_API_KEY the spans only keep the outcome locally.
"""

import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import opik
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_client: opik.Opik | None = None

# StageAttempt being run by the current worker or request
_attempt_id: ContextVar[str | None] = ContextVar("stage_attempt_id", default=None)


def init_tracing(project_name: str = "work-pipeline") -> opik.Opik | None:
    """
    Initialise Opik tracing.

    Returns:
        Opik client instance, or None when OPIK_API_KEY is not set
    """
    global _client

    if _client is not None:
        return _client

    if not os.getenv("OPIK_API_KEY"):
        logger.debug("OPIK_API_KEY not set, tracing disabled")
        return None

    _client = opik.Opik(project_name=project_name)
    logger.info(f"Opik tracing initialised for project: {project_name}")
    return _client


@contextmanager
def attempt_scope(attempt_id):
    """Tag every trace opened inside the block with a StageAttempt id."""
    token = _attempt_id.set(str(attempt_id))
    try:
        yield
    finally:
        _attempt_id.reset(token)


def current_attempt_id() -> str | None:
    return _attempt_id.get()


def _error_label(error: Exception) -> str:
    # TextServiceError carries a short label; anything else is reported by type
    return getattr(error, "label", None) or type(error).__name__


class StageSpan:
    """Outcome of one stage run, mirrored onto the Opik trace when there is one."""

    def __init__(self, stage: str, work_id: str, trace=None):
        self.stage = stage
        self.work_id = work_id
        self.outcome = "completed"
        self.reason: str | None = None
        self._trace = trace

    def completed(self, **output):
        self._update(output=output)

    def fallback(self, error: Exception):
        """The text service failed and a labelled placeholder was used instead."""
        self.outcome = "fallback"
        self.reason = _error_label(error)

    def discarded(self, reason: str):
        """The work changed while the stage ran; nothing was written."""
        self.outcome = "discarded"
        self.reason = reason

    def failed(self, error: Exception):
        self.outcome = "failed"
        self.reason = _error_label(error)
        self._update(metadata={"error": str(error)})

    def finish(self):
        metadata = {"outcome": self.outcome}
        if self.reason:
            metadata["reason"] = self.reason
        self._update(metadata=metadata)
        if self._trace is not None:
            self._trace.end()
        logger.debug(
            f"Stage {self.stage} for work {self.work_id} "
            f"(attempt {current_attempt_id()}): {self.outcome}"
            + (f" ({self.reason})" if self.reason else "")
        )

    def _update(self, **kwargs):
        if self._trace is not None:
            self._trace.update(**kwargs)


@contextmanager
def trace_stage(stage: str, work_id, input_data: dict[str, Any] | None = None):
    """
    Trace one stage run for a work.

    Exceptions escaping the block mark the span failed with the error's
    label and propagate.

    Yields:
        StageSpan for recording the outcome
    """
    trace = None
    if _client is not None:
        trace = _client.trace(
            name=f"stage_{stage}",
            input={"work_id": str(work_id), **(input_data or {})},
            metadata={"stage": stage, "attempt_id": current_attempt_id()},
        )

    span = StageSpan(stage, str(work_id), trace)
    try:
        yield span
    except Exception as e:
        span.failed(e)
        raise
    finally:
        span.finish()


@contextmanager
def trace_llm_call(model: str, prompt: str, metadata: dict[str, Any] | None = None):
    """
    Trace one generative text call.

    Failures are recorded with the error's label (e.g. ``HTTP 503``).

    Yields:
        Opik trace, or None when tracing is disabled
    """
    if _client is None:
        yield None
        return

    trace = _client.trace(
        name="llm_call",
        input={"prompt": prompt},
        metadata={"model": model, "attempt_id": current_attempt_id(), **(metadata or {})},
    )
    try:
        yield trace
    except Exception as e:
        trace.update(metadata={"error": str(e), "error_label": _error_label(e)})
        raise
    finally:
        trace.end()
