"""Base analyzer class and common types."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class AudioFeatures(BaseModel):
    """Acoustic features extracted from a stored audio blob."""

    analyzer: str
    is_piano: bool
    key: str
    tempo: int
    mood: str
    extra: dict[str, Any] = Field(default_factory=dict)

    def as_analysis_data(self) -> dict[str, Any]:
        """Shape persisted in ``Work.analysis_data``."""
        return {
            "key": self.key,
            "tempo": self.tempo,
            "mood": self.mood,
            "analyzer": self.analyzer,
            **self.extra,
        }


class BaseAnalyzer(ABC):
    """
    Base class for audio analyzers.

    An analyzer turns a storage reference into ``AudioFeatures``. The
    pipeline only depends on this contract, so a real feature extractor
    can replace the simulated one without touching the stages.
    """

    name: str
    description: str

    def __init__(self):
        if not hasattr(self, "name") or not self.name:
            raise TypeError(f"{self.__class__.__name__} must define 'name'")
        if not hasattr(self, "description") or not self.description:
            raise TypeError(f"{self.__class__.__name__} must define 'description'")

    @abstractmethod
    def analyse(self, storage_ref: str, is_improvisation_hint: bool = False) -> AudioFeatures:
        """
        Extract features for the audio stored at ``storage_ref``.

        Args:
            storage_ref: Storage Gateway reference of the audio blob
            is_improvisation_hint: Whether the owner marked the work as an improvisation

        Returns:
            AudioFeatures for the blob
        """
        pass
