"""Models for the work pipeline."""

import uuid

from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.db import models

from .fields import NotesField, has_note_content
from .vocabulary import MAX_BENEFITS

# Fields written by clear_audio, grouped by the stage that populates them
ANALYSIS_FIELDS = ["generated_name", "analysis_data", "primary_genre", "secondary_genre"]
ARTWORK_FIELDS = ["artwork_url", "artwork_storage_path", "artwork_prompt"]
CATEGORIZATION_FIELDS = [
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
]
LIST_FIELDS = {"user_tags", "audience_ages", "benefits", "themes"}
CASCADE_RESET_FIELDS = (
    ANALYSIS_FIELDS
    + ARTWORK_FIELDS
    + ["user_tags"]
    + CATEGORIZATION_FIELDS
    + ["is_ready_for_release", "is_metadata_confirmed"]
)


class Work(models.Model):
    """One creative audio work tracked from capture to release."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="works")

    class Status(models.TextChoices):
        UPLOADED = "uploaded"
        ANALYZING = "analyzing"
        COMPLETED = "completed"
        FAILED = "failed"

    status = models.CharField(max_length=20, choices=Status, default=Status.UPLOADED)
    status_message = models.TextField(blank=True)
    analysis_started_at = models.DateTimeField(null=True, blank=True)

    is_improvisation = models.BooleanField(null=True)

    # Audio
    file_name = models.CharField(max_length=255, blank=True)
    storage_path = models.CharField(max_length=500, blank=True)

    # Analysis output
    generated_name = models.CharField(max_length=255, null=True, blank=True)
    analysis_data = models.JSONField(null=True, blank=True)
    primary_genre = models.CharField(max_length=100, null=True, blank=True)
    secondary_genre = models.CharField(max_length=100, null=True, blank=True)

    # Artwork
    artwork_prompt = models.TextField(null=True, blank=True)
    artwork_url = models.URLField(max_length=500, null=True, blank=True)
    artwork_storage_path = models.CharField(max_length=500, null=True, blank=True)

    notes = NotesField()
    user_tags = models.JSONField(default=list, blank=True)

    # Distribution booleans
    is_piano = models.BooleanField(null=True)
    is_instrumental = models.BooleanField(null=True)
    is_original_song = models.BooleanField(null=True)
    has_explicit_lyrics = models.BooleanField(null=True)

    # Categorization
    content_type = models.CharField(max_length=100, null=True, blank=True)
    language = models.CharField(max_length=100, null=True, blank=True)
    primary_use = models.CharField(max_length=100, null=True, blank=True)
    audience_level = models.CharField(max_length=100, null=True, blank=True)
    audience_ages = models.JSONField(default=list, blank=True)
    voice = models.CharField(max_length=100, null=True, blank=True)
    benefits = models.JSONField(default=list, blank=True)
    practice = models.CharField(max_length=200, null=True, blank=True)
    themes = models.JSONField(default=list, blank=True)
    description = models.TextField(null=True, blank=True)

    # Gates
    is_metadata_confirmed = models.BooleanField(default=False)
    is_ready_for_release = models.BooleanField(default=False)
    is_submitted_to_distrokid = models.BooleanField(default=False)
    is_submitted_to_insight_timer = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.generated_name or 'Untitled'} ({self.status})"

    def save(self, *args, **kwargs):
        if self.benefits and len(self.benefits) > MAX_BENEFITS:
            self.benefits = list(self.benefits)[:MAX_BENEFITS]
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "updated_at"]
        super().save(*args, **kwargs)

    # ----- Class methods -----

    @classmethod
    def get_or_none(cls, work_id, user=None) -> "Work | None":
        """Get a work by ID (optionally scoped to an owner), None if missing."""
        queryset = cls.objects.all() if user is None else cls.objects.filter(user=user)
        try:
            return queryset.get(id=work_id)
        except (cls.DoesNotExist, ValidationError, ValueError):
            return None

    # ----- Properties -----

    @property
    def has_audio(self) -> bool:
        return bool(self.storage_path)

    @property
    def has_artwork(self) -> bool:
        return bool(self.artwork_url)

    @property
    def mood(self) -> str | None:
        return (self.analysis_data or {}).get("mood")

    @property
    def has_core_metadata(self) -> bool:
        """Primary genre plus key, tempo and mood from analysis."""
        analysis = self.analysis_data or {}
        return bool(self.primary_genre) and all(
            analysis.get(field) not in (None, "") for field in ("key", "tempo", "mood")
        )

    @property
    def has_notes(self) -> bool:
        return has_note_content(self.notes)

    @property
    def has_categorization(self) -> bool:
        """Benefits chosen and a practice set."""
        return bool(self.benefits) and bool(self.practice)

    @property
    def is_analyzing(self) -> bool:
        return self.status == self.Status.ANALYZING


class StageAttempt(models.Model):
    """One dispatch of a pipeline stage, kept for inspection and retry."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    work = models.ForeignKey(Work, on_delete=models.CASCADE, related_name="attempts")

    class Stage(models.TextChoices):
        ANALYSIS = "analysis"
        ARTWORK = "artwork"
        AUGMENTATION = "augmentation"
        DESCRIPTION = "description"
        TITLE = "title"
        SUGGESTIONS = "suggestions"

    class State(models.TextChoices):
        QUEUED = "queued"
        RUNNING = "running"
        SUCCEEDED = "succeeded"
        FAILED = "failed"

    stage = models.CharField(max_length=20, choices=Stage)
    state = models.CharField(max_length=20, choices=State, default=State.QUEUED)
    payload = models.JSONField(default=dict)
    result = models.JSONField(default=dict, blank=True)
    error = models.TextField(blank=True)
    task_id = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    started_at = models.DateTimeField(null=True, blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.stage} attempt for {self.work_id} ({self.state})"

    @classmethod
    def get_or_none(cls, attempt_id) -> "StageAttempt | None":
        try:
            return cls.objects.get(id=attempt_id)
        except (cls.DoesNotExist, ValidationError, ValueError):
            return None

    @property
    def is_outstanding(self) -> bool:
        return self.state in (self.State.QUEUED, self.State.RUNNING)
