"""Tests for the work lifecycle operations."""

from unittest.mock import MagicMock, patch

import pytest
from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.utils import timezone

from src.works import services
from src.works.exceptions import (
    AudioAlreadyAttached,
    DispatchError,
    InvalidTransition,
    InvalidUpload,
    MetadataIncomplete,
    NotReadyForSubmission,
    StorageError,
)
from src.works.models import StageAttempt, Work
from src.works.storage import StorageGateway

Status = Work.Status


def wav(name="take1.wav", size=64):
    return SimpleUploadedFile(name, b"\0" * size, content_type="audio/wav")


def png(name="cover.png"):
    return SimpleUploadedFile(name, b"\x89PNG" + b"\0" * 16, content_type="image/png")


def fake_storage(ref="1/1000.wav"):
    storage = MagicMock(spec=StorageGateway)
    storage.put.return_value = ref
    storage.remove.return_value = []
    storage.public_url.side_effect = lambda path: f"/media/{path}"
    return storage


def ready_work(user, **fields):
    values = {
        "status": Status.COMPLETED,
        "storage_path": "1/1000.wav",
        "file_name": "take1.wav",
        "artwork_url": "https://cdn.example/cover.png",
        "benefits": ["Relax"],
        "practice": "Sound Meditation",
        "is_metadata_confirmed": True,
    }
    values.update(fields)
    return Work.objects.create(user=user, **values)


def test_capture_name_uses_local_date():
    today = timezone.localdate().strftime("%Y%m%d")
    assert services.capture_name() == f"{today} - Quick Capture"
    assert services.capture_name("Harbour") == f"{today} - Harbour"


class TestCapture(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="composer", password="test")

    def test_capture_idea(self):
        work = services.capture_idea(self.user)
        assert work.status == Status.UPLOADED
        assert work.generated_name.endswith(" - Quick Capture")
        assert work.is_improvisation is True
        assert not work.has_audio

    @patch("src.works.services.dispatch")
    def test_capture_and_attach(self, mock_dispatch):
        mock_dispatch.return_value = MagicMock(spec=StageAttempt)
        work, attempt = services.capture_and_attach(
            self.user, wav(), title="Harbour", storage=fake_storage()
        )
        work.refresh_from_db()
        assert work.status == Status.ANALYZING
        assert work.generated_name.endswith(" - Harbour")
        assert attempt is mock_dispatch.return_value

    def test_capture_and_attach_rejects_bad_file_before_creating(self):
        with pytest.raises(InvalidUpload):
            services.capture_and_attach(self.user, wav("notes.txt"), storage=fake_storage())
        assert Work.objects.count() == 0


class TestAttachAudio(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="composer", password="test")
        self.work = services.capture_idea(self.user, is_improvisation=True)

    @patch("src.works.services.dispatch")
    def test_attach_starts_analysis(self, mock_dispatch):
        storage = fake_storage(ref="1/1000.wav")

        services.attach_audio(self.work, wav(), storage=storage)

        self.work.refresh_from_db()
        assert self.work.status == Status.ANALYZING
        assert self.work.status_message == "Analyzing audio..."
        assert self.work.storage_path == "1/1000.wav"
        assert self.work.file_name == "take1.wav"
        assert self.work.analysis_started_at is not None

        stage, work, payload = mock_dispatch.call_args.args
        assert stage == StageAttempt.Stage.ANALYSIS
        assert payload == {
            "work_id": str(self.work.id),
            "storage_ref": "1/1000.wav",
            "is_improvisation_hint": True,
        }

    @patch("src.works.services.dispatch")
    def test_attach_writes_blob_to_default_storage(self, mock_dispatch):
        services.attach_audio(self.work, wav(), storage=StorageGateway())

        self.work.refresh_from_db()
        assert self.work.storage_path.startswith(f"{self.user.id}/")
        assert self.work.storage_path.endswith(".wav")
        assert StorageGateway().storage.exists(self.work.storage_path)

    @patch("src.works.services.dispatch")
    def test_audio_already_attached(self, mock_dispatch):
        self.work.storage_path = "1/999.wav"
        self.work.save()

        with pytest.raises(AudioAlreadyAttached):
            services.attach_audio(self.work, wav(), storage=fake_storage())
        mock_dispatch.assert_not_called()

    @patch("src.works.services.dispatch")
    def test_attach_requires_uploaded_status(self, mock_dispatch):
        self.work.status = Status.FAILED
        self.work.save()

        with pytest.raises(InvalidTransition):
            services.attach_audio(self.work, wav(), storage=fake_storage())

    @patch("src.works.services.dispatch")
    def test_oversized_file_rejected(self, mock_dispatch):
        storage = fake_storage()
        with pytest.raises(InvalidUpload):
            services.attach_audio(self.work, wav(size=2 * 1024 * 1024), storage=storage)
        storage.put.assert_not_called()

    @patch("src.works.services.dispatch")
    def test_storage_failure_changes_nothing(self, mock_dispatch):
        storage = fake_storage()
        storage.put.side_effect = StorageError("bucket unavailable")

        with pytest.raises(StorageError):
            services.attach_audio(self.work, wav(), storage=storage)

        self.work.refresh_from_db()
        assert self.work.status == Status.UPLOADED
        assert self.work.storage_path == ""
        mock_dispatch.assert_not_called()

    @patch("src.works.services.dispatch")
    def test_dispatch_failure_marks_work_failed(self, mock_dispatch):
        mock_dispatch.side_effect = DispatchError("broker down")

        with pytest.raises(DispatchError):
            services.attach_audio(self.work, wav(), storage=fake_storage())

        self.work.refresh_from_db()
        assert self.work.status == Status.FAILED
        assert self.work.status_message == "Could not queue analysis"


class TestClearAudio(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="composer", password="test")

    def test_clear_resets_and_removes_blobs(self):
        work = ready_work(self.user, artwork_storage_path="1/artwork/x.png")
        storage = fake_storage()

        failed = services.clear_audio(work, storage=storage)

        work.refresh_from_db()
        assert failed == []
        storage.remove.assert_called_once_with(["1/1000.wav", "1/artwork/x.png"])
        assert work.status == Status.UPLOADED
        assert not work.has_audio
        assert work.benefits == []
        assert work.is_metadata_confirmed is False

    def test_clear_reports_blobs_it_could_not_delete(self):
        work = ready_work(self.user)
        storage = fake_storage()
        storage.remove.return_value = ["1/1000.wav"]

        assert services.clear_audio(work, storage=storage) == ["1/1000.wav"]
        work.refresh_from_db()
        assert work.status == Status.UPLOADED


class TestDelete(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="composer", password="test")
        self.other = User.objects.create_user(username="other", password="test")

    def test_bulk_delete_continues_past_misses(self):
        mine = ready_work(self.user)
        theirs = ready_work(self.other)
        storage = fake_storage()

        result = services.bulk_delete(
            self.user, [str(mine.id), str(theirs.id), "not-a-uuid"], storage=storage
        )

        assert result["deleted"] == [str(mine.id)]
        assert result["not_found"] == [str(theirs.id), "not-a-uuid"]
        assert result["failed_blobs"] == []
        assert not Work.objects.filter(id=mine.id).exists()
        assert Work.objects.filter(id=theirs.id).exists()

    def test_delete_work_removes_attempts(self):
        work = ready_work(self.user)
        StageAttempt.objects.create(work=work, stage=StageAttempt.Stage.ARTWORK)

        services.delete_work(work, storage=fake_storage())

        assert StageAttempt.objects.count() == 0


class TestArtwork(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="composer", password="test")
        self.work = Work.objects.create(user=self.user, artwork_prompt="Misty harbour")

    def test_upload_sets_url_and_replaces_previous(self):
        self.work.artwork_storage_path = "1/artwork/old.jpg"
        self.work.save()
        storage = fake_storage(ref=f"{self.user.id}/artwork/{self.work.id}.png")

        services.upload_artwork(self.work, png(), storage=storage)

        self.work.refresh_from_db()
        assert self.work.artwork_url == f"/media/{self.user.id}/artwork/{self.work.id}.png"
        assert self.work.has_artwork
        storage.remove.assert_called_once_with(["1/artwork/old.jpg"])

    def test_upload_rejects_non_image(self):
        with pytest.raises(InvalidUpload):
            services.upload_artwork(self.work, wav(), storage=fake_storage())

    def test_remove_keeps_prompt(self):
        self.work.artwork_url = "https://cdn.example/cover.png"
        self.work.artwork_storage_path = "1/artwork/x.png"
        self.work.save()

        services.remove_artwork(self.work, storage=fake_storage())

        self.work.refresh_from_db()
        assert self.work.artwork_url is None
        assert self.work.artwork_storage_path is None
        assert self.work.artwork_prompt == "Misty harbour"


class TestMetadataGates(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="composer", password="test")

    def test_confirm_requires_categorization(self):
        work = Work.objects.create(user=self.user, benefits=["Relax"])
        with pytest.raises(MetadataIncomplete):
            services.confirm_metadata(work)

        work.practice = "Sound Meditation"
        services.confirm_metadata(work)
        work.refresh_from_db()
        assert work.is_metadata_confirmed

    def test_unconfirm_always_allowed(self):
        work = ready_work(self.user)
        services.confirm_metadata(work, confirmed=False)
        work.refresh_from_db()
        assert not work.is_metadata_confirmed

    def test_update_applies_changes(self):
        work = ready_work(self.user)
        services.update_work(work, {"description": "Calm piano.", "user_tags": ["piano"]})
        work.refresh_from_db()
        assert work.description == "Calm piano."
        assert work.user_tags == ["piano"]

    def test_update_confirm_without_categorization(self):
        work = Work.objects.create(user=self.user)
        with pytest.raises(MetadataIncomplete):
            services.update_work(work, {"is_metadata_confirmed": True})
        work.refresh_from_db()
        assert not work.is_metadata_confirmed

    def test_submission_flag_blocked_by_preflight(self):
        work = ready_work(self.user, artwork_url=None)
        with pytest.raises(NotReadyForSubmission) as exc_info:
            services.update_work(work, {"is_submitted_to_distrokid": True})
        assert "Artwork Missing" in str(exc_info.value)
        work.refresh_from_db()
        assert not work.is_submitted_to_distrokid

    def test_submission_flag_when_ready(self):
        work = ready_work(self.user)
        services.update_work(work, {"is_submitted_to_insight_timer": True})
        work.refresh_from_db()
        assert work.is_submitted_to_insight_timer
