"""Celery tasks for the work pipeline stages."""

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from . import jobs
from .lifecycle import transition
from .models import StageAttempt, Work
from .notifications import notify_work_status
from .stages import STAGE_RUNNERS

logger = logging.getLogger(__name__)


def _run(attempt_id: str) -> dict:
    attempt = StageAttempt.get_or_none(attempt_id)
    if attempt is None:
        logger.error(f"Stage attempt {attempt_id} not found")
        return {"error": f"Stage attempt {attempt_id} not found"}
    return jobs.run_attempt(attempt, STAGE_RUNNERS[attempt.stage])


@shared_task(max_retries=0)
def analyze_work(attempt_id: str):
    """Run the analysis stage for a queued attempt."""
    return _run(attempt_id)


@shared_task(max_retries=0)
def generate_artwork_prompt(attempt_id: str):
    return _run(attempt_id)


@shared_task(max_retries=0)
def augment_distribution_metadata(attempt_id: str):
    return _run(attempt_id)


@shared_task(max_retries=0)
def generate_description(attempt_id: str):
    return _run(attempt_id)


@shared_task(max_retries=0)
def generate_title(attempt_id: str):
    return _run(attempt_id)


@shared_task(max_retries=0)
def generate_creative_suggestions(attempt_id: str):
    return _run(attempt_id)


@shared_task
def fail_stalled_analyses():
    """
    Move works stuck in analyzing past the timeout to failed.

    Also expires stage attempts that were never picked up by a worker.
    """
    timeout = timedelta(seconds=settings.WORK_ANALYSIS_TIMEOUT_SECONDS)
    cutoff = timezone.now() - timeout
    stalled = Work.objects.filter(
        status=Work.Status.ANALYZING, analysis_started_at__lt=cutoff
    )

    failed = 0
    for work in stalled:
        message = "Analysis timed out"
        transition(work, Work.Status.FAILED, message)
        notify_work_status(work.id, Work.Status.FAILED, message)
        failed += 1

    if failed:
        logger.warning(f"Marked {failed} stalled analyses as failed")
    expired = jobs.expire_stalled_attempts(timeout)
    return {"failed_works": failed, "expired_attempts": expired}
