"""Analyzer registry for selecting the active analyzer by name."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseAnalyzer

ANALYZER_REGISTRY: dict[str, type["BaseAnalyzer"]] = {}

DEFAULT_ANALYZER = "simulated"


def register_analyzer(cls):
    """Decorator to register an analyzer under its ``name``."""
    ANALYZER_REGISTRY[cls.name] = cls
    return cls


def get_analyzer(name: str | None = None) -> "BaseAnalyzer":
    """
    Instantiate the configured analyzer.

    Falls back to the ``WORK_ANALYZER`` setting, then to the simulated one.
    Raises KeyError for unknown names.
    """
    if name is None:
        from django.conf import settings
        name = getattr(settings, "WORK_ANALYZER", DEFAULT_ANALYZER)
    cls = ANALYZER_REGISTRY.get(name)
    if cls is None:
        raise KeyError(f"Unknown analyzer: {name}")
    return cls()


def get_analyzer_names() -> list[str]:
    """Names of all registered analyzers."""
    return list(ANALYZER_REGISTRY)
