"""Tests for the status state machine and the clear-audio reset."""

import pytest
from django.contrib.auth.models import User
from django.test import TestCase

from src.works.exceptions import InvalidTransition
from src.works.fields import default_notes
from src.works.lifecycle import apply_reset, can_transition, reset_values, transition
from src.works.models import CASCADE_RESET_FIELDS, Work

Status = Work.Status


def test_legal_edges():
    assert can_transition(Status.UPLOADED, Status.ANALYZING)
    assert can_transition(Status.ANALYZING, Status.COMPLETED)
    assert can_transition(Status.ANALYZING, Status.FAILED)


def test_illegal_edges():
    assert not can_transition(Status.UPLOADED, Status.COMPLETED)
    assert not can_transition(Status.COMPLETED, Status.ANALYZING)
    assert not can_transition(Status.FAILED, Status.COMPLETED)
    assert not can_transition(Status.COMPLETED, Status.UPLOADED)


def test_same_status_is_allowed():
    for status in Status.values:
        assert can_transition(status, status)


def test_reset_values_cover_cascade_set():
    values = reset_values()
    assert set(CASCADE_RESET_FIELDS) <= set(values)
    assert values["benefits"] == []
    assert values["user_tags"] == []
    assert values["is_metadata_confirmed"] is False
    assert values["generated_name"] is None
    assert values["status"] == Status.UPLOADED


class TestTransition(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="composer", password="test")
        self.work = Work.objects.create(user=self.user)

    def test_transition_persists_status_and_fields(self):
        transition(self.work, Status.ANALYZING, "Analyzing audio...", storage_path="1/1.wav")
        self.work.refresh_from_db()
        assert self.work.status == Status.ANALYZING
        assert self.work.status_message == "Analyzing audio..."
        assert self.work.storage_path == "1/1.wav"

    def test_illegal_transition_raises_and_leaves_row(self):
        with pytest.raises(InvalidTransition):
            transition(self.work, Status.COMPLETED)
        self.work.refresh_from_db()
        assert self.work.status == Status.UPLOADED

    def test_duplicate_completion_overwrites_outputs(self):
        transition(self.work, Status.ANALYZING)
        transition(self.work, Status.COMPLETED, primary_genre="Jazz")
        transition(self.work, Status.COMPLETED, primary_genre="Folk")
        self.work.refresh_from_db()
        assert self.work.primary_genre == "Folk"


class TestApplyReset(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="composer", password="test")

    def test_reset_clears_exactly_the_cascade_set(self):
        notes = default_notes()
        notes[1]["content"] = "Wistful"
        work = Work.objects.create(
            user=self.user,
            status=Status.COMPLETED,
            is_improvisation=True,
            file_name="take1.wav",
            storage_path="1/1.wav",
            generated_name="Quiet Harbour",
            analysis_data={"key": "C Major", "tempo": 72, "mood": "Calm"},
            primary_genre="New Age",
            secondary_genre="Classical",
            artwork_prompt="Soft light",
            artwork_url="https://cdn.example/art.png",
            artwork_storage_path="1/artwork/x.png",
            notes=notes,
            user_tags=["piano"],
            is_piano=True,
            is_instrumental=True,
            is_original_song=True,
            content_type="Music",
            language="English",
            primary_use="Sleep",
            audience_level="Everyone",
            audience_ages=["Young Adults"],
            voice="None (Instrumental)",
            benefits=["Relax"],
            practice="Sound Meditation",
            themes=["Nature"],
            description="Calm piano.",
            is_metadata_confirmed=True,
            is_ready_for_release=True,
            is_submitted_to_distrokid=True,
        )

        apply_reset(work)
        work.refresh_from_db()

        assert work.status == Status.UPLOADED
        assert work.storage_path == ""
        assert not work.has_audio
        for name in ("generated_name", "analysis_data", "primary_genre", "secondary_genre",
                     "artwork_prompt", "artwork_url", "artwork_storage_path", "content_type",
                     "language", "primary_use", "audience_level", "voice", "practice",
                     "description"):
            assert getattr(work, name) is None, name
        for name in ("user_tags", "audience_ages", "benefits", "themes"):
            assert getattr(work, name) == [], name
        assert work.is_metadata_confirmed is False
        assert work.is_ready_for_release is False

        # Untouched
        assert work.notes[1]["content"] == "Wistful"
        assert work.is_improvisation is True
        assert work.is_piano is True
        assert work.is_instrumental is True
        assert work.is_original_song is True
        assert work.is_submitted_to_distrokid is True
