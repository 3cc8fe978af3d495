"""Errors raised by the work pipeline."""


class WorkError(Exception):
    """Base error for work pipeline operations."""

    code = "work_error"


class InvalidTransition(WorkError):
    """A status change outside uploaded -> analyzing -> completed|failed."""

    code = "invalid_transition"

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move work from '{current}' to '{target}'")
        self.current = current
        self.target = target


class AudioAlreadyAttached(WorkError):
    """Audio must be cleared before a new blob is attached."""

    code = "audio_already_attached"


class MetadataIncomplete(WorkError):
    """Confirmation requested before categorization is complete."""

    code = "metadata_incomplete"


class NotReadyForSubmission(WorkError):
    """Submission flag set while the pre-flight gate is blocked."""

    code = "not_ready_for_submission"


class StorageError(WorkError):
    """The storage backend rejected an upload or removal."""

    code = "storage_error"


class StageError(WorkError):
    """A pipeline stage could not produce its output."""

    code = "stage_error"


class MissingStageInputs(StageError):
    """A stage was invoked without the fields it needs."""

    code = "missing_inputs"


class MalformedStageOutput(StageError):
    """The text service answered, but not in the expected shape."""

    code = "malformed_output"


class WorkNotFound(WorkError):
    """No work with the given ID (or not owned by the caller)."""

    code = "not_found"


class DispatchError(WorkError):
    """A stage job could not be handed to the queue."""

    code = "dispatch_failed"


class InvalidUpload(WorkError):
    """An uploaded file has the wrong type or size."""

    code = "validation_error"
