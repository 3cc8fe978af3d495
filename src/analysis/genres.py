"""Rule-based genre selection from analysis features."""

import random

from src.works.vocabulary import GENERAL_GENRES, PIANO_GENRES

# (is_piano, mood, tempo bucket) -> primary genre
GENRE_RULES = {
    (True, "Calm", "slow"): "New Age",
    (True, "Reflective", "slow"): "Classical",
    (True, "Melancholy", "slow"): "Classical",
    (True, "Dreamy", "moderate"): "Ambient",
    (True, "Uplifting", "moderate"): "Jazz",
    (False, "Calm", "slow"): "Ambient",
    (False, "Dreamy", "slow"): "Ambient",
    (False, "Uplifting", "moderate"): "Folk",
    (False, "Energetic", "fast"): "Electronic",
    (False, "Melancholy", "moderate"): "Soundtrack",
}


def tempo_bucket(tempo: float) -> str:
    """Bucket a BPM value into slow / moderate / fast."""
    if tempo < 80:
        return "slow"
    if tempo < 120:
        return "moderate"
    return "fast"


def select_genres(
    is_piano: bool,
    mood: str,
    tempo: float,
    rng: random.Random | None = None,
) -> tuple[str, str]:
    """
    Pick primary and secondary genres.

    The primary genre comes from GENRE_RULES, or a uniform pick from the
    piano or general list when no rule matches. The secondary genre is a
    uniform pick from the same list excluding the primary; it can only
    equal the primary when the list has a single member.

    Returns:
        (primary_genre, secondary_genre)
    """
    rng = rng or random.Random()
    genres = PIANO_GENRES if is_piano else GENERAL_GENRES

    primary = GENRE_RULES.get((is_piano, mood, tempo_bucket(tempo)))
    if primary is None:
        primary = rng.choice(genres)

    remaining = [g for g in genres if g != primary]
    secondary = rng.choice(remaining) if remaining else primary
    return primary, secondary
