"""Simulated analyzer: placeholder feature extraction for the analysis stage."""

import random

from .base import AudioFeatures, BaseAnalyzer
from .registry import register_analyzer

PIANO_WEIGHT_IMPROVISATION = 0.95
PIANO_WEIGHT_DEFAULT = 0.80

# Deterministic features per piano flag. Solo piano hits the New Age rule;
# (ensemble, Reflective, moderate) has no rule, so ensemble genres are a random pick.
PIANO_FEATURES = {"key": "C Major", "tempo": 72, "mood": "Calm"}
ENSEMBLE_FEATURES = {"key": "A Minor", "tempo": 104, "mood": "Reflective"}


@register_analyzer
class SimulatedAnalyzer(BaseAnalyzer):
    """Randomised stand-in for a real piano classifier and feature extractor."""

    name = "simulated"
    description = (
        "Weighted coin flip for 'primarily piano' (0.95 when the owner marked an "
        "improvisation, 0.80 otherwise); key, tempo and mood follow from the flag."
    )

    def __init__(self, rng: random.Random | None = None):
        super().__init__()
        self.rng = rng or random.Random()

    def analyse(self, storage_ref: str, is_improvisation_hint: bool = False) -> AudioFeatures:
        weight = PIANO_WEIGHT_IMPROVISATION if is_improvisation_hint else PIANO_WEIGHT_DEFAULT
        is_piano = self.rng.random() < weight
        features = PIANO_FEATURES if is_piano else ENSEMBLE_FEATURES

        return AudioFeatures(
            analyzer=self.name,
            is_piano=is_piano,
            extra={"piano_confidence": weight},
            **features,
        )
