"""
Work lifecycle operations.

Capture, audio attachment, the clear-audio reset, artwork upload, user
edits and deletion. Views call these; they raise WorkError subclasses
which the views map to HTTP responses.
"""

import logging

from django.conf import settings
from django.utils import timezone

from .exceptions import (
    AudioAlreadyAttached,
    DispatchError,
    InvalidTransition,
    InvalidUpload,
    MetadataIncomplete,
    NotReadyForSubmission,
)
from .jobs import Stage, dispatch
from .lifecycle import apply_reset, transition
from .models import StageAttempt, Work
from .notifications import notify_work_status
from .preflight import evaluate_preflight
from .stages import DEFAULT_NAME
from .storage import StorageGateway, artwork_path, audio_path, get_storage, is_artwork_file, is_audio_file

logger = logging.getLogger(__name__)

SUBMISSION_FLAGS = ("is_submitted_to_distrokid", "is_submitted_to_insight_timer")


def capture_name(title: str | None = None) -> str:
    """``YYYYMMDD - {title}`` with the quick capture default."""
    return f"{timezone.localdate():%Y%m%d} - {title or DEFAULT_NAME}"


def capture_idea(user, title: str | None = None, is_improvisation: bool | None = True) -> Work:
    """Create a work with no audio yet."""
    work = Work.objects.create(
        user=user,
        generated_name=capture_name(title),
        is_improvisation=is_improvisation,
    )
    logger.info(f"Captured work {work.id} for user {user.id}")
    return work


def validate_audio(upload):
    if not is_audio_file(upload.name):
        raise InvalidUpload(f"Unsupported audio file: {upload.name}")
    max_bytes = settings.WORK_MAX_AUDIO_BYTES
    if upload.size is not None and upload.size > max_bytes:
        raise InvalidUpload(f"Audio file exceeds {max_bytes // (1024 * 1024)} MB")


def attach_audio(work: Work, upload, storage: StorageGateway | None = None) -> StageAttempt:
    """
    Store the audio blob, start analysis and queue the analysis stage.

    Raises:
        AudioAlreadyAttached: If the work already has audio
        InvalidTransition: If the work is not in uploaded
        InvalidUpload: For an unsupported or oversized file
        StorageError: If the upload fails (nothing is changed)
        DispatchError: If the job cannot be queued (the work is marked failed)
    """
    if work.has_audio:
        raise AudioAlreadyAttached("Clear the existing audio before attaching new audio")
    if work.status != Work.Status.UPLOADED:
        raise InvalidTransition(work.status, Work.Status.ANALYZING)
    validate_audio(upload)

    storage = storage or get_storage()
    ref = storage.put(audio_path(work.user_id, upload.name), upload)

    try:
        transition(
            work,
            Work.Status.ANALYZING,
            "Analyzing audio...",
            storage_path=ref,
            file_name=upload.name,
            analysis_started_at=timezone.now(),
        )
    except Exception:
        storage.remove([ref])
        raise
    notify_work_status(work.id, Work.Status.ANALYZING, "Analyzing audio...")

    payload = {
        "work_id": str(work.id),
        "storage_ref": ref,
        "is_improvisation_hint": bool(work.is_improvisation),
    }
    try:
        return dispatch(Stage.ANALYSIS, work, payload)
    except DispatchError:
        message = "Could not queue analysis"
        transition(work, Work.Status.FAILED, message)
        notify_work_status(work.id, Work.Status.FAILED, message)
        raise


def capture_and_attach(
    user,
    upload,
    title: str | None = None,
    is_improvisation: bool | None = True,
    storage: StorageGateway | None = None,
) -> tuple[Work, StageAttempt]:
    """Capture a work and attach audio in one call (drag and drop)."""
    validate_audio(upload)
    work = capture_idea(user, title=title, is_improvisation=is_improvisation)
    attempt = attach_audio(work, upload, storage=storage)
    return work, attempt


def clear_audio(work: Work, storage: StorageGateway | None = None) -> list[str]:
    """
    Remove the audio (and uploaded artwork) blobs and reset the work.

    Returns:
        Blob paths that could not be deleted
    """
    storage = storage or get_storage()
    failed = storage.remove([work.storage_path, work.artwork_storage_path])
    apply_reset(work)
    notify_work_status(work.id, Work.Status.UPLOADED, "Audio cleared")
    return failed


def delete_work(work: Work, storage: StorageGateway | None = None) -> list[str]:
    """
    Delete the work after reclaiming its blobs (best effort).

    Returns:
        Blob paths that could not be deleted
    """
    storage = storage or get_storage()
    failed = storage.remove([work.storage_path, work.artwork_storage_path])
    work_id = work.id
    work.delete()
    logger.info(f"Deleted work {work_id}")
    return failed


def bulk_delete(user, work_ids, storage: StorageGateway | None = None) -> dict:
    """Delete each of the user's works in ``work_ids``, continuing past misses."""
    storage = storage or get_storage()
    deleted, not_found, failed_blobs = [], [], []
    for work_id in work_ids:
        work = Work.get_or_none(work_id, user=user)
        if work is None:
            not_found.append(str(work_id))
            continue
        failed_blobs.extend(delete_work(work, storage=storage))
        deleted.append(str(work_id))
    return {"deleted": deleted, "not_found": not_found, "failed_blobs": failed_blobs}


def upload_artwork(work: Work, upload, storage: StorageGateway | None = None) -> Work:
    """Store manually uploaded cover art and point ``artwork_url`` at it."""
    if not is_artwork_file(upload.name):
        raise InvalidUpload(f"Unsupported artwork file: {upload.name}")

    storage = storage or get_storage()
    previous = work.artwork_storage_path
    ref = storage.put(artwork_path(work.user_id, work.id, upload.name), upload)

    work.artwork_storage_path = ref
    work.artwork_url = storage.public_url(ref)
    work.save(update_fields=["artwork_url", "artwork_storage_path"])
    if previous and previous != ref:
        storage.remove([previous])
    logger.info(f"Artwork uploaded for work {work.id}")
    return work


def remove_artwork(work: Work, storage: StorageGateway | None = None) -> list[str]:
    """Delete uploaded artwork; the generated ``artwork_prompt`` is kept."""
    storage = storage or get_storage()
    failed = storage.remove([work.artwork_storage_path])
    work.artwork_url = None
    work.artwork_storage_path = None
    work.save(update_fields=["artwork_url", "artwork_storage_path"])
    return failed


def confirm_metadata(work: Work, confirmed: bool = True) -> Work:
    """
    Set the human metadata attestation.

    Raises:
        MetadataIncomplete: If confirming before benefits and practice are set
    """
    if confirmed and not work.has_categorization:
        raise MetadataIncomplete("Populate benefits and practice before confirming")
    work.is_metadata_confirmed = confirmed
    work.save(update_fields=["is_metadata_confirmed"])
    return work


def update_work(work: Work, changes: dict) -> Work:
    """
    Apply validated user edits in one write.

    Confirmation and submission flags are checked against the edited state.

    Raises:
        MetadataIncomplete: Confirming without complete categorization
        NotReadyForSubmission: Setting a submission flag while the gate is blocked
    """
    if not changes:
        return work
    for name, value in changes.items():
        setattr(work, name, value)

    if changes.get("is_metadata_confirmed") and not work.has_categorization:
        work.refresh_from_db()
        raise MetadataIncomplete("Populate benefits and practice before confirming")

    if any(changes.get(flag) for flag in SUBMISSION_FLAGS):
        gate = evaluate_preflight(work)
        if not gate.ready:
            work.refresh_from_db()
            raise NotReadyForSubmission(
                f"Pre-flight checks not passed: {', '.join(gate.blocking_reasons)}"
            )

    work.save(update_fields=list(changes))
    return work
