"""Observability module for generative text and stage tracing."""

from .tracing import StageSpan, attempt_scope, init_tracing, trace_llm_call, trace_stage

__all__ = ["StageSpan", "attempt_scope", "init_tracing", "trace_llm_call", "trace_stage"]
