"""
Client reconciliation.

Clients refresh a work on a schedule chosen by ``poll_hint``: fast while
analysis runs, slower while any other stage attempt is outstanding, and
not at all once the work is idle. ``watch`` is the same loop run
server-side (used by the ``watch_work`` management command).
"""

import logging
import time

from django.conf import settings

from .jobs import outstanding_attempts
from .models import Work

logger = logging.getLogger(__name__)


def poll_interval(work: Work, has_outstanding: bool) -> int | None:
    """Seconds until the next refresh, or None to stop polling."""
    if work.is_analyzing:
        return settings.WORK_POLL_INTERVAL_ANALYZING
    if has_outstanding:
        return settings.WORK_POLL_INTERVAL_STAGES
    return None


def poll_hint(work: Work) -> dict:
    outstanding = list(outstanding_attempts(work).values_list("stage", flat=True))
    return {
        "interval_seconds": poll_interval(work, bool(outstanding)),
        "outstanding_stages": sorted(set(outstanding)),
    }


def watch(work_id, on_change, sleep=time.sleep, max_polls: int | None = None) -> dict | None:
    """
    Reload the work until it goes idle, calling ``on_change(snapshot)`` on changes.

    Returns:
        The last snapshot, or None if the work does not exist
    """
    from .serializers import work_snapshot

    last = None
    polls = 0
    while True:
        work = Work.get_or_none(work_id)
        if work is None:
            logger.info(f"Work {work_id} no longer exists; stopping")
            return last

        snapshot = work_snapshot(work)
        if snapshot != last:
            on_change(snapshot)
            last = snapshot

        interval = snapshot["poll"]["interval_seconds"]
        polls += 1
        if interval is None or (max_polls is not None and polls >= max_polls):
            return last
        sleep(interval)
