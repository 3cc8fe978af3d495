"""Storage Gateway for audio and artwork blobs."""

import logging
import time
from pathlib import PurePosixPath

from django.core.files.storage import Storage, default_storage

from .exceptions import StorageError

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".aac", ".webm", ".mp4"}
ARTWORK_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


def _extension(file_name: str) -> str:
    return PurePosixPath(file_name or "").suffix.lower()


def audio_path(user_id, file_name: str, timestamp_ms: int | None = None) -> str:
    """``{user_id}/{timestamp}.{ext}`` for an uploaded audio blob."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{user_id}/{timestamp_ms}{_extension(file_name)}"


def artwork_path(user_id, work_id, file_name: str) -> str:
    """``{user_id}/artwork/{work_id}.{ext}`` for manually uploaded artwork."""
    return f"{user_id}/artwork/{work_id}{_extension(file_name)}"


def is_audio_file(file_name: str) -> bool:
    return _extension(file_name) in AUDIO_EXTENSIONS


def is_artwork_file(file_name: str) -> bool:
    return _extension(file_name) in ARTWORK_EXTENSIONS


class StorageGateway:
    """
    Thin wrapper over a Django storage backend.

    Works with local filesystem storage in development and S3 (via
    django-storages) in production.
    """

    def __init__(self, storage: Storage | None = None):
        self.storage = storage or default_storage

    def put(self, path: str, content) -> str:
        """
        Store ``content`` at ``path``.

        Returns:
            The reference actually used by the backend (it may rename on collision)

        Raises:
            StorageError: If the backend rejects the write
        """
        try:
            ref = self.storage.save(path, content)
        except Exception as e:
            logger.error(f"Upload to {path} failed: {e}")
            raise StorageError(f"Upload failed: {e}") from e
        logger.info(f"Stored blob at {ref}")
        return ref

    def remove(self, paths: list[str]) -> list[str]:
        """
        Delete each path, continuing past failures.

        Returns:
            Paths that could not be deleted
        """
        failed = []
        for path in paths:
            if not path:
                continue
            try:
                if self.storage.exists(path):
                    self.storage.delete(path)
            except Exception as e:
                logger.warning(f"Failed to delete blob {path}: {e}")
                failed.append(path)
        return failed

    def public_url(self, ref: str) -> str:
        """Resolve a storage reference to a URL clients can fetch."""
        return self.storage.url(ref)


def get_storage() -> StorageGateway:
    return StorageGateway()
