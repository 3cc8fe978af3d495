import uuid

import django.db.models.deletion
import src.works.fields
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Work",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("uploaded", "Uploaded"),
                            ("analyzing", "Analyzing"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        default="uploaded",
                        max_length=20,
                    ),
                ),
                ("status_message", models.TextField(blank=True)),
                ("analysis_started_at", models.DateTimeField(blank=True, null=True)),
                ("is_improvisation", models.BooleanField(null=True)),
                ("file_name", models.CharField(blank=True, max_length=255)),
                ("storage_path", models.CharField(blank=True, max_length=500)),
                ("generated_name", models.CharField(blank=True, max_length=255, null=True)),
                ("analysis_data", models.JSONField(blank=True, null=True)),
                ("primary_genre", models.CharField(blank=True, max_length=100, null=True)),
                ("secondary_genre", models.CharField(blank=True, max_length=100, null=True)),
                ("artwork_prompt", models.TextField(blank=True, null=True)),
                ("artwork_url", models.URLField(blank=True, max_length=500, null=True)),
                ("artwork_storage_path", models.CharField(blank=True, max_length=500, null=True)),
                ("notes", src.works.fields.NotesField(default=src.works.fields.default_notes)),
                ("user_tags", models.JSONField(blank=True, default=list)),
                ("is_piano", models.BooleanField(null=True)),
                ("is_instrumental", models.BooleanField(null=True)),
                ("is_original_song", models.BooleanField(null=True)),
                ("has_explicit_lyrics", models.BooleanField(null=True)),
                ("content_type", models.CharField(blank=True, max_length=100, null=True)),
                ("language", models.CharField(blank=True, max_length=100, null=True)),
                ("primary_use", models.CharField(blank=True, max_length=100, null=True)),
                ("audience_level", models.CharField(blank=True, max_length=100, null=True)),
                ("audience_ages", models.JSONField(blank=True, default=list)),
                ("voice", models.CharField(blank=True, max_length=100, null=True)),
                ("benefits", models.JSONField(blank=True, default=list)),
                ("practice", models.CharField(blank=True, max_length=200, null=True)),
                ("themes", models.JSONField(blank=True, default=list)),
                ("description", models.TextField(blank=True, null=True)),
                ("is_metadata_confirmed", models.BooleanField(default=False)),
                ("is_ready_for_release", models.BooleanField(default=False)),
                ("is_submitted_to_distrokid", models.BooleanField(default=False)),
                ("is_submitted_to_insight_timer", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="works",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="StageAttempt",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "stage",
                    models.CharField(
                        choices=[
                            ("analysis", "Analysis"),
                            ("artwork", "Artwork"),
                            ("augmentation", "Augmentation"),
                            ("description", "Description"),
                            ("title", "Title"),
                            ("suggestions", "Suggestions"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("queued", "Queued"),
                            ("running", "Running"),
                            ("succeeded", "Succeeded"),
                            ("failed", "Failed"),
                        ],
                        default="queued",
                        max_length=20,
                    ),
                ),
                ("payload", models.JSONField(default=dict)),
                ("result", models.JSONField(blank=True, default=dict)),
                ("error", models.TextField(blank=True)),
                ("task_id", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("finished_at", models.DateTimeField(blank=True, null=True)),
                (
                    "work",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attempts",
                        to="works.work",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
