"""Distribution pre-flight gate."""

from typing import Literal

from pydantic import BaseModel

CheckStatus = Literal["passed", "pending", "failed"]


class PreflightCheck(BaseModel):
    """One pre-flight check and the action that would clear it."""

    key: str
    status: CheckStatus
    label: str
    action_label: str | None = None


class PreflightResult(BaseModel):
    checks: list[PreflightCheck]
    ready: bool
    blocked: bool
    blocking_reasons: list[str]


def _audio_check(work) -> PreflightCheck:
    if work.has_audio:
        return PreflightCheck(key="audio", status="passed", label="Audio File Uploaded")
    return PreflightCheck(
        key="audio", status="failed", label="Audio File Missing", action_label="Upload Audio"
    )


def _artwork_check(work) -> PreflightCheck:
    # A generated prompt is not artwork; only an uploaded image counts
    if work.has_artwork:
        return PreflightCheck(key="artwork", status="passed", label="Artwork Uploaded (3000x3000)")
    return PreflightCheck(
        key="artwork", status="failed", label="Artwork Missing", action_label="Upload Artwork"
    )


def _metadata_check(work) -> PreflightCheck:
    if work.is_metadata_confirmed:
        return PreflightCheck(key="metadata", status="passed", label="AI Metadata Confirmed")
    if work.has_categorization:
        return PreflightCheck(
            key="metadata",
            status="pending",
            label="Review & Confirm Metadata",
            action_label="Confirm Metadata",
        )
    return PreflightCheck(
        key="metadata",
        status="failed",
        label="AI Metadata Incomplete",
        action_label="AI Populate Distribution Metadata",
    )


def evaluate_preflight(work) -> PreflightResult:
    """
    Run the pre-flight checks for ``work``.

    ``ready`` when every check passed, ``blocked`` when any failed. A
    pending check (categorised but unconfirmed) is neither.
    """
    checks = [_audio_check(work), _artwork_check(work), _metadata_check(work)]
    return PreflightResult(
        checks=checks,
        ready=all(c.status == "passed" for c in checks),
        blocked=any(c.status == "failed" for c in checks),
        blocking_reasons=[c.label for c in checks if c.status != "passed"],
    )


def confirmation_is_stale(work) -> bool:
    """Confirmed, but the categorization has since been emptied by an edit."""
    return bool(work.is_metadata_confirmed) and not work.has_categorization
