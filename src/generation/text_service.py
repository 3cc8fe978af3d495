"""
Generative Text Service - LiteLLM Provider-Agnostic Completion

A stateless prompt-in / text-out wrapper used by every pipeline stage.
LiteLLM translates the call to the configured provider, so the same code
works with Gemini, Claude, GPT-4 and others.

Usage:
    from src.generation.text_service import get_text_service

    service = get_text_service()
    title = service.complete(prompt, temperature=0.9)

Failure modes (HTTP status, timeout, network, empty output) are raised as
TextServiceError so each stage can decide whether to fall back or surface.

Environment variables needed:
- GEMINI_API_KEY / GOOGLE_API_KEY for Gemini
- ANTHROPIC_API_KEY for Claude
- OPENAI_API_KEY for GPT-4
"""

import logging
import re

import litellm
from dotenv import load_dotenv

from ..observability.tracing import init_tracing, trace_llm_call

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini/gemini-2.0-flash"
DEFAULT_TIMEOUT = 30.0

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```\s*$")
_WRAPPING_QUOTES = re.compile(r"^[\"']|[\"']$")


class TextServiceError(RuntimeError):
    """A generative text call did not produce usable text."""

    def __init__(self, message: str, kind: str = "network", status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def label(self) -> str:
        """Short reason used in fallback strings, e.g. ``HTTP 503``."""
        if self.kind == "http" and self.status_code:
            return f"HTTP {self.status_code}"
        return {
            "timeout": "Timeout",
            "empty": "Empty Response",
            "config": "Key Missing",
            "malformed": "Malformed Response",
        }.get(self.kind, "Network Error")


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapped around a model response."""
    return _CODE_FENCE.sub("", text.strip()).strip()


def strip_wrapping_quotes(text: str) -> str:
    """Remove one pair of surrounding quotes from a single-line answer."""
    return _WRAPPING_QUOTES.sub("", text.strip()).strip()


class TextService:
    """
    Prompt-in / text-out completion through LiteLLM.

    Each call is traced with Opik when tracing is enabled.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        enable_tracing: bool = True,
        project_name: str = "work-pipeline",
    ):
        """
        Initialise the text service.

        Args:
            model: LiteLLM model identifier, e.g. "gemini/gemini-2.0-flash"
            timeout: Per-call timeout in seconds
            enable_tracing: Whether to enable Opik tracing
            project_name: Project name for Opik
        """
        self.model = model
        self.timeout = timeout

        if enable_tracing:
            init_tracing(project_name)

    def complete(self, prompt: str, temperature: float = 0.7, purpose: str = "") -> str:
        """
        Send one user prompt and return the stripped response text.

        Args:
            prompt: The full prompt text
            temperature: Sampling temperature
            purpose: Label recorded on the trace (e.g. "title")

        Returns:
            Non-empty response text

        Raises:
            TextServiceError: On HTTP error, timeout, network error or empty output
        """
        with trace_llm_call(self.model, prompt, metadata={"purpose": purpose}) as trace:
            try:
                response = litellm.completion(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=temperature,
                    timeout=self.timeout,
                )
            except litellm.exceptions.Timeout as e:
                logger.warning(f"Text service timeout ({purpose}): {e}")
                raise TextServiceError(str(e), kind="timeout") from e
            except Exception as e:
                status_code = getattr(e, "status_code", None)
                if isinstance(status_code, int):
                    logger.warning(f"Text service HTTP {status_code} ({purpose}): {e}")
                    raise TextServiceError(str(e), kind="http", status_code=status_code) from e
                logger.warning(f"Text service error ({purpose}): {e}")
                raise TextServiceError(str(e), kind="network") from e

            try:
                text = response.choices[0].message.content
            except (AttributeError, IndexError, TypeError):
                text = None

            if not text or not text.strip():
                raise TextServiceError("Model returned no text", kind="empty")

            text = text.strip()
            if trace is not None:
                trace.update(output={"text": text})
            return text


def get_text_service() -> TextService:
    """Build a TextService from Django settings."""
    from django.conf import settings

    return TextService(
        model=getattr(settings, "LLM_MODEL", DEFAULT_MODEL),
        timeout=getattr(settings, "GENERATION_TIMEOUT_SECONDS", DEFAULT_TIMEOUT),
        enable_tracing=getattr(settings, "GENERATION_TRACING", True),
    )
