"""Controlled vocabularies for genres and distribution categorization."""

import random

PIANO_GENRES = [
    "Classical",
    "New Age",
    "Jazz",
    "Ambient",
    "Soundtrack",
]

GENERAL_GENRES = [
    "Ambient",
    "Classical",
    "Jazz",
    "New Age",
    "Electronic",
    "Folk",
    "Soundtrack",
    "Pop",
    "Rock",
    "Hip Hop/Rap",
    "Experimental",
]

MOODS = [
    "Calm",
    "Reflective",
    "Melancholy",
    "Uplifting",
    "Energetic",
    "Dreamy",
]

KEYS = [
    "C Major", "G Major", "D Major", "A Major", "E Major", "F Major",
    "A Minor", "E Minor", "D Minor", "C Minor", "G Minor", "B Minor",
]

CONTENT_TYPES = ["Guided meditation", "Music", "Talk"]

LANGUAGES = [
    "English", "BR. Português", "Deutsch", "Italiano", "Français", "Español",
    "Nederlands", "Pусский", "Polski", "Svenska", "Norsk", "Dansk", "Suomi",
    "Türkçe", "العربية", "עברית", "हिन्दी", "中文", "日本語", "한국어",
]

PRIMARY_USES = [
    "Meditation", "Yoga", "Tai Chi", "Walking", "Breathing / Pranayama",
    "Chanting", "Prayer", "Healing", "Dance", "Recreation",
    "Educational / Informative", "Sleep", "Focus", "Relaxation", "Movement",
    "Study", "Sound Bath",
]

AUDIENCE_LEVELS = [
    "Everyone",
    "Complete beginners",
    "Some prior experience necessary (2 months or more)",
    "Extensive experience necessary (12 months +)",
]

AUDIENCE_AGES = ["Young Adults", "Teenagers", "Young Children", "Infants"]

VOICES = ["Masculine", "Feminine", "None (Instrumental)"]

BENEFITS = {
    "Kids & Teens": ["Kids Meditation", "Kids Sleep"],
    "Performance": [
        "Clarity of Mind", "Creativity", "Effective Leadership", "Focus", "Flow",
        "Mindfulness at Work", "Motivation & Energy", "Performance in Sport",
    ],
    "Health & Happiness": [
        "Abundance & Prosperity", "Acceptance", "Authenticity",
        "Centered & Emotionally Balanced", "Letting Go of Attachments",
        "Presence & Stillness", "Relax", "Self-Confidence",
        "Strength & Resilience", "Wellness & Happiness", "Wisdom & Insight",
    ],
    "Sleep": ["Kids Sleep", "Yoga Nidra"],
    "Spiritual": ["Awakening", "Divine Connection", "Intuition", "Vital Energy"],
    "Stress & Anxiety": [
        "Managing Stress", "Dealing with Anxiety", "Immediate Relief - SOS",
        "Dealing with Anger", "Overcoming Fear", "Mindfulness at Work",
    ],
    "Recovery & Healing": [
        "Assisting with Depression", "Dealing with Grief", "Emotional Healing",
        "Pain Management (Physical)", "Positive Body Image",
        "Recovery from Addictions",
    ],
    "Relationships": [
        "Compassion", "Forgiveness", "Gratitude", "Love", "Mindful Parenting",
        "Patience", "Pregnancy & Fertility", "Shared Experiences & Connection",
    ],
}

PRACTICES = {
    "Concentration": [
        "Body Scan", "Concentration Meditation", "Samatha", "Nada Yoga",
    ],
    "Gentle Repetition": [
        "Mantra Meditation", "Chanting Meditation", "Kirtan",
        "Raja Yoga Meditation", "Vedic Meditation", "Vedantic",
    ],
    "Mindfulness": [
        "Mindfulness Meditation", "Insight Meditation", "Open Awareness",
        "Vipassana", "Mindfulness-Based Cognitive Therapy (MBCT)", "Mindful Eating",
    ],
    "Movement": [
        "Mindfulness-based stress reduction (MBSR) – Movement", "Walking meditation",
        "Kundalini Meditation", "Kundalini Yoga", "Hatha Yoga", "Vinyasa Yoga",
        "Pranayama", "Qi Gong", "Bikram", "Yin Yoga", "Ashtanga", "Somatic Meditation",
    ],
    "Self-Observation": [
        "Non-Duality Meditation", "Advaita Vedanta Meditation", "Zen - Kōan",
        "Contemplative Reading",
    ],
    "Sound": [
        "Sound Meditation", "Brainwave Entrainment", "Chakra Music", "Shamanic Drumming",
    ],
    "Visualization": [
        "Guided imagery or Visualization", "Relaxation Meditation", "Self-Compassion",
        "Affirmation Meditation", "Manifestation", "Chakra Meditation", "Yoga Nidra",
    ],
}

THEMES = {
    "Religion": [
        "Baháʼí Faith", "Bhakti", "Christianity", "Confucianism", "Hinduism",
        "Islam", "Jainism", "Judaism", "Shinto", "Sikhism", "Sufism", "Taoism",
        "Traditional Buddhism",
    ],
    "Secular": ["Nature", "Secular Mindfulness"],
    "New Age": ["Metaphysics", "New Age Mysticism", "Astrology"],
    "Science": ["Neuroscience", "Psychology", "Science and Research", "Sport"],
    "Spirituality": [
        "Consciousness", "Spirituality", "Contemporary Buddhism", "Nondualism",
        "Energy-Based", "Vedic Tradition", "Alternative Medicine", "Shamanism",
        "Kabbalah", "Yogic Tradition",
    ],
}

MAX_BENEFITS = 3
MAX_THEMES = 3


def flatten(groups: dict[str, list[str]]) -> list[str]:
    """Unique members of a grouped vocabulary, in first-seen order."""
    seen = []
    for members in groups.values():
        for member in members:
            if member not in seen:
                seen.append(member)
    return seen


ALL_BENEFITS = flatten(BENEFITS)
ALL_PRACTICES = flatten(PRACTICES)
ALL_THEMES = flatten(THEMES)


def pick_members(values, vocabulary: list[str], limit: int) -> list[str]:
    """
    Keep the vocabulary members of ``values``, de-duplicated, capped at ``limit``.

    Matching ignores case and surrounding whitespace; the canonical spelling
    from the vocabulary is returned.
    """
    if isinstance(values, str):
        values = [values]
    canonical = {v.casefold(): v for v in vocabulary}
    picked = []
    for value in values or []:
        if not isinstance(value, str):
            continue
        match = canonical.get(value.strip().casefold())
        if match and match not in picked:
            picked.append(match)
        if len(picked) == limit:
            break
    return picked


def canonical_member(value, vocabulary: list[str]) -> str | None:
    """Vocabulary spelling of ``value`` or None if it is not a member."""
    if not isinstance(value, str):
        return None
    for member in vocabulary:
        if member.casefold() == value.strip().casefold():
            return member
    return None


# Abstract words for offline title generation
ABSTRACT_WORDS = [
    "Echo", "Silence", "Drift", "Luminescence", "Void", "Aether", "Bloom", "Wander",
    "Solstice", "Rivulet", "Hush", "Kinetic", "Sublime", "Ephemeral", "Cascade", "Opal",
    "Resonance", "Flicker", "Azure", "Whisper", "Zenith", "Umbra", "Glimmer", "Tidal",
]

TITLE_TEMPLATES = [
    "The {first} of {second}",
    "{first} {second}",
    "A {first} {second}",
    "Beneath the {first} {second}",
    "Where {first} Meets {second}",
]


def random_title(rng: random.Random | None = None) -> str:
    """Build a title from the abstract word templates."""
    rng = rng or random.Random()
    template = rng.choice(TITLE_TEMPLATES)
    title = template.format(first=rng.choice(ABSTRACT_WORDS), second=rng.choice(ABSTRACT_WORDS))
    return title[0].upper() + title[1:]
