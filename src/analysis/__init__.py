"""Pluggable audio analyzers for the analysis stage."""

from .base import AudioFeatures, BaseAnalyzer
from .genres import select_genres, tempo_bucket
from .registry import ANALYZER_REGISTRY, get_analyzer, get_analyzer_names, register_analyzer
from .simulated import SimulatedAnalyzer

__all__ = [
    "AudioFeatures",
    "BaseAnalyzer",
    "ANALYZER_REGISTRY",
    "get_analyzer",
    "get_analyzer_names",
    "register_analyzer",
    "select_genres",
    "tempo_bucket",
    "SimulatedAnalyzer",
]
