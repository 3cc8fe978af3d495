"""
Stage job ledger.

Every stage run, queued or inline, is recorded as a StageAttempt so it can
be inspected per work and re-dispatched with the same payload.
"""

import logging
from datetime import timedelta

from django.utils import timezone

from src.observability import attempt_scope

from .exceptions import DispatchError, InvalidTransition
from .models import StageAttempt, Work
from .notifications import notify_stage_progress

logger = logging.getLogger(__name__)

Stage = StageAttempt.Stage
State = StageAttempt.State

# Celery task names, resolved lazily to avoid importing tasks at module load
STAGE_TASKS = {
    Stage.ANALYSIS: "analyze_work",
    Stage.ARTWORK: "generate_artwork_prompt",
    Stage.AUGMENTATION: "augment_distribution_metadata",
    Stage.DESCRIPTION: "generate_description",
    Stage.TITLE: "generate_title",
    Stage.SUGGESTIONS: "generate_creative_suggestions",
}


def _task_for(stage: str):
    from . import tasks

    return getattr(tasks, STAGE_TASKS[stage])


def dispatch(stage: str, work: Work, payload: dict) -> StageAttempt:
    """
    Record an attempt and queue the stage task for it.

    Raises:
        DispatchError: If the broker refuses the job (the attempt is marked failed)
    """
    attempt = StageAttempt.objects.create(work=work, stage=stage, payload=payload)
    try:
        result = _task_for(stage).apply_async(args=[str(attempt.id)])
    except Exception as e:
        logger.error(f"Could not queue {stage} for work {work.id}: {e}")
        mark_failed(attempt, f"Could not queue job: {e}")
        raise DispatchError(f"Could not queue {stage} job: {e}") from e

    attempt.task_id = result.id or ""
    attempt.save(update_fields=["task_id"])
    logger.info(f"Queued {stage} for work {work.id} (attempt {attempt.id})")
    notify_stage_progress(work.id, stage, State.QUEUED)
    return attempt


def mark_running(attempt: StageAttempt):
    attempt.state = State.RUNNING
    attempt.started_at = timezone.now()
    attempt.save(update_fields=["state", "started_at"])
    notify_stage_progress(attempt.work_id, attempt.stage, attempt.state)


def mark_succeeded(attempt: StageAttempt, result: dict | None = None):
    attempt.state = State.SUCCEEDED
    attempt.result = result or {}
    attempt.finished_at = timezone.now()
    attempt.save(update_fields=["state", "result", "finished_at"])
    notify_stage_progress(attempt.work_id, attempt.stage, attempt.state)


def mark_failed(attempt: StageAttempt, error: str):
    attempt.state = State.FAILED
    attempt.error = error
    attempt.finished_at = timezone.now()
    attempt.save(update_fields=["state", "error", "finished_at"])
    notify_stage_progress(attempt.work_id, attempt.stage, attempt.state)


def run_attempt(attempt: StageAttempt, runner) -> dict:
    """
    Run ``runner(**attempt.payload)`` and record the outcome on the attempt.

    Exceptions from the runner mark the attempt failed and propagate.
    """
    mark_running(attempt)
    try:
        with attempt_scope(attempt.id):
            result = runner(**attempt.payload)
    except Exception as e:
        mark_failed(attempt, str(e))
        raise
    mark_succeeded(attempt, result)
    return result


def run_inline(stage: str, work: Work, payload: dict, runner) -> dict:
    """Record an attempt and run the stage in the calling thread."""
    attempt = StageAttempt.objects.create(work=work, stage=stage, payload=payload)
    return run_attempt(attempt, runner)


def retry(attempt: StageAttempt) -> StageAttempt:
    """
    Re-dispatch an attempt.

    The original payload is replayed, except for artwork, whose inputs are
    rebuilt from the work as it is now. A failed analysis cannot be re-run
    in place; the audio has to be cleared and attached again.

    Raises:
        InvalidTransition: Retrying analysis on a work that is not analyzing or completed
        DispatchError: If the broker refuses the job
    """
    from .stages import artwork_payload

    work = attempt.work
    if attempt.stage == Stage.ANALYSIS and work.status not in (
        Work.Status.ANALYZING,
        Work.Status.COMPLETED,
    ):
        raise InvalidTransition(work.status, Work.Status.ANALYZING)
    payload = artwork_payload(work) if attempt.stage == Stage.ARTWORK else attempt.payload
    logger.info(f"Retrying {attempt.stage} attempt {attempt.id} for work {work.id}")
    return dispatch(attempt.stage, work, payload)


def outstanding_attempts(work: Work):
    """Attempts still queued or running for ``work``."""
    return work.attempts.filter(state__in=[State.QUEUED, State.RUNNING])


def expire_stalled_attempts(older_than: timedelta) -> int:
    """Fail attempts that have been queued or running longer than ``older_than``."""
    cutoff = timezone.now() - older_than
    stalled = StageAttempt.objects.filter(
        state__in=[State.QUEUED, State.RUNNING], created_at__lt=cutoff
    )
    count = 0
    for attempt in stalled:
        mark_failed(attempt, "Attempt timed out")
        count += 1
    if count:
        logger.warning(f"Expired {count} stalled stage attempts")
    return count
