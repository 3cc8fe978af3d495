"""Request validation and response shapes for the works API."""

from rest_framework import serializers

from . import vocabulary
from .fields import NOTE_ZONES
from .models import StageAttempt, Work
from .polling import poll_hint
from .preflight import confirmation_is_stale, evaluate_preflight
from .readiness import evaluate_readiness

EDITABLE_FIELDS = [
    "generated_name",
    "is_improvisation",
    "primary_genre",
    "secondary_genre",
    "notes",
    "user_tags",
    "is_piano",
    "is_instrumental",
    "is_original_song",
    "has_explicit_lyrics",
    "content_type",
    "language",
    "primary_use",
    "audience_level",
    "audience_ages",
    "voice",
    "benefits",
    "practice",
    "themes",
    "description",
    "is_metadata_confirmed",
    "is_ready_for_release",
    "is_submitted_to_distrokid",
    "is_submitted_to_insight_timer",
]


def _iso(value):
    return value.isoformat() if value else None


def work_to_dict(work: Work) -> dict:
    data = {name: getattr(work, name) for name in EDITABLE_FIELDS}
    data.update(
        {
            "id": str(work.id),
            "status": work.status,
            "status_message": work.status_message,
            "file_name": work.file_name,
            "storage_path": work.storage_path,
            "has_audio": work.has_audio,
            "analysis_data": work.analysis_data,
            "artwork_prompt": work.artwork_prompt,
            "artwork_url": work.artwork_url,
            "analysis_started_at": _iso(work.analysis_started_at),
            "created_at": _iso(work.created_at),
            "updated_at": _iso(work.updated_at),
        }
    )
    return data


def work_snapshot(work: Work) -> dict:
    """Full work state plus everything derived from it."""
    return {
        **work_to_dict(work),
        "readiness": evaluate_readiness(work).model_dump(),
        "preflight": evaluate_preflight(work).model_dump(),
        "confirmation_is_stale": confirmation_is_stale(work),
        "poll": poll_hint(work),
    }


def work_summary(work: Work) -> dict:
    """List row: identity, status and progress."""
    readiness = evaluate_readiness(work)
    return {
        "id": str(work.id),
        "generated_name": work.generated_name,
        "status": work.status,
        "has_audio": work.has_audio,
        "has_notes": work.has_notes,
        "is_improvisation": work.is_improvisation,
        "progress_percent": readiness.progress_percent,
        "next_action": readiness.next_action.label if readiness.next_action else None,
        "created_at": _iso(work.created_at),
    }


def attempt_to_dict(attempt: StageAttempt) -> dict:
    return {
        "id": str(attempt.id),
        "work_id": str(attempt.work_id),
        "stage": attempt.stage,
        "state": attempt.state,
        "payload": attempt.payload,
        "result": attempt.result,
        "error": attempt.error,
        "task_id": attempt.task_id,
        "created_at": _iso(attempt.created_at),
        "started_at": _iso(attempt.started_at),
        "finished_at": _iso(attempt.finished_at),
    }


def _choice(choices):
    return serializers.ChoiceField(choices=choices, allow_null=True, required=False)


def _tags(choices, max_length=None):
    return serializers.ListField(
        child=serializers.ChoiceField(choices=choices),
        max_length=max_length,
        required=False,
    )


class NoteSerializer(serializers.Serializer):
    id = serializers.ChoiceField(choices=[zone_id for zone_id, _ in NOTE_ZONES])
    title = serializers.CharField(required=False, allow_blank=True)
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)


class WorkCaptureSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, allow_blank=True, max_length=200)
    is_improvisation = serializers.BooleanField(required=False, allow_null=True, default=True)


class WorkUpdateSerializer(serializers.Serializer):
    """Partial update of user-editable fields; unknown fields are rejected."""

    generated_name = serializers.CharField(required=False, allow_null=True, max_length=255)
    is_improvisation = serializers.BooleanField(required=False, allow_null=True)
    primary_genre = serializers.CharField(required=False, allow_null=True, max_length=100)
    secondary_genre = serializers.CharField(required=False, allow_null=True, max_length=100)
    notes = NoteSerializer(many=True, required=False)
    user_tags = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False
    )
    is_piano = serializers.BooleanField(required=False, allow_null=True)
    is_instrumental = serializers.BooleanField(required=False, allow_null=True)
    is_original_song = serializers.BooleanField(required=False, allow_null=True)
    has_explicit_lyrics = serializers.BooleanField(required=False, allow_null=True)
    content_type = _choice(vocabulary.CONTENT_TYPES)
    language = _choice(vocabulary.LANGUAGES)
    primary_use = _choice(vocabulary.PRIMARY_USES)
    audience_level = _choice(vocabulary.AUDIENCE_LEVELS)
    audience_ages = _tags(vocabulary.AUDIENCE_AGES)
    voice = _choice(vocabulary.VOICES)
    benefits = _tags(vocabulary.ALL_BENEFITS, max_length=vocabulary.MAX_BENEFITS)
    practice = _choice(vocabulary.ALL_PRACTICES)
    themes = _tags(vocabulary.ALL_THEMES, max_length=vocabulary.MAX_THEMES)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    is_metadata_confirmed = serializers.BooleanField(required=False)
    is_ready_for_release = serializers.BooleanField(required=False)
    is_submitted_to_distrokid = serializers.BooleanField(required=False)
    is_submitted_to_insight_timer = serializers.BooleanField(required=False)

    def validate(self, attrs):
        unknown = set(self.initial_data) - set(self.fields)
        if unknown:
            raise serializers.ValidationError(
                {name: "This field cannot be edited." for name in sorted(unknown)}
            )
        return attrs

    def validate_notes(self, value):
        if len(value) != len(NOTE_ZONES):
            raise serializers.ValidationError(f"Expected exactly {len(NOTE_ZONES)} notes.")
        titles = dict(NOTE_ZONES)
        by_id = {note["id"]: note for note in value}
        if len(by_id) != len(NOTE_ZONES):
            raise serializers.ValidationError("Each note zone must appear once.")
        return [
            {"id": zone_id, "title": titles[zone_id], "content": by_id[zone_id].get("content", "")}
            for zone_id, _ in NOTE_ZONES
        ]

    def validate_user_tags(self, value):
        tags = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    def _dedupe(self, value):
        return list(dict.fromkeys(value))

    def validate_benefits(self, value):
        return self._dedupe(value)

    def validate_themes(self, value):
        return self._dedupe(value)

    def validate_audience_ages(self, value):
        return self._dedupe(value)


class BulkDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class TitleRequestSerializer(serializers.Serializer):
    mode = serializers.ChoiceField(choices=["ai", "random"], default="ai")


class ConfirmMetadataSerializer(serializers.Serializer):
    confirmed = serializers.BooleanField(default=True)
