"""Generative text service and prompt templates."""

from .text_service import (
    TextService,
    TextServiceError,
    get_text_service,
    strip_code_fences,
    strip_wrapping_quotes,
)

__all__ = [
    "TextService",
    "TextServiceError",
    "get_text_service",
    "strip_code_fences",
    "strip_wrapping_quotes",
]
