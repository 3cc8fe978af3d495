"""Model fields for work records."""

from django.db import models

NOTE_ZONES = [
    ("zone1", "Zone 1: Structure (A-B-A, Verse/Chorus, etc.)"),
    ("zone2", "Zone 2: Mood/Vibe (Emotional intent, feeling, imagery)"),
    ("zone3", "Zone 3: Technical (Key, Tempo, Instrumentation, Mix notes)"),
    ("zone4", "Zone 4: Next Steps (Single most actionable task)"),
]


def default_notes() -> list[dict]:
    """Fresh copy of the four-zone notes template."""
    return [{"id": zone_id, "title": title, "content": ""} for zone_id, title in NOTE_ZONES]


def _is_note(value) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("id"), str)
        and isinstance(value.get("title"), str)
        and isinstance(value.get("content"), str)
    )


def normalize_notes(value) -> list[dict]:
    """
    Return ``value`` if it is a well-formed four-note list, else the template.

    Malformed input is replaced wholesale; partial merges are never attempted.
    """
    if isinstance(value, list) and len(value) == len(NOTE_ZONES) and all(_is_note(n) for n in value):
        return [{"id": n["id"], "title": n["title"], "content": n["content"]} for n in value]
    return default_notes()


def has_note_content(notes) -> bool:
    """True when at least one note zone has non-blank content."""
    return any((n.get("content") or "").strip() for n in normalize_notes(notes))


class NotesField(models.JSONField):
    """JSON field that always loads as a valid four-zone notes list."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("default", default_notes)
        super().__init__(*args, **kwargs)

    def from_db_value(self, value, expression, connection):
        value = super().from_db_value(value, expression, connection)
        return normalize_notes(value)

    def get_prep_value(self, value):
        return super().get_prep_value(normalize_notes(value))
