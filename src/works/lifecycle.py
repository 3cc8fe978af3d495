"""
Status state machine for works.

Legal edges are uploaded -> analyzing -> completed | failed. The only way
back to uploaded is ``reset_values()`` applied by the clear-audio
operation, which also wipes every stage-populated field.
"""

import logging

from .exceptions import InvalidTransition
from .models import CASCADE_RESET_FIELDS, LIST_FIELDS, Work

logger = logging.getLogger(__name__)

Status = Work.Status

ALLOWED_TRANSITIONS = {
    Status.UPLOADED: {Status.ANALYZING},
    Status.ANALYZING: {Status.COMPLETED, Status.FAILED},
    Status.COMPLETED: set(),
    Status.FAILED: set(),
}


def can_transition(current: str, target: str) -> bool:
    """True for a legal edge or a write of the current status."""
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS.get(current, set())


def transition(work: Work, target: str, message: str = "", **fields) -> Work:
    """
    Move ``work`` to ``target`` and persist it with ``fields`` in one write.

    Writing the status a work already has is a no-op for the status and
    still saves ``fields`` (a duplicate stage run overwriting its outputs).

    Raises:
        InvalidTransition: If the edge is not in ALLOWED_TRANSITIONS
    """
    current = work.status
    if not can_transition(current, target):
        raise InvalidTransition(current, target)

    work.status = target
    work.status_message = message
    for name, value in fields.items():
        setattr(work, name, value)
    work.save(update_fields=["status", "status_message", *fields])

    if current != target:
        logger.info(f"Work {work.id}: {current} -> {target}")
    return work


def reset_values() -> dict:
    """Field values written by the clear-audio cascading reset."""
    values = {
        name: ([] if name in LIST_FIELDS else False if name.startswith("is_") else None)
        for name in CASCADE_RESET_FIELDS
    }
    values.update(
        status=Status.UPLOADED,
        status_message="",
        analysis_started_at=None,
        storage_path="",
        file_name="",
    )
    return values


def apply_reset(work: Work) -> Work:
    """Reset ``work`` to uploaded and clear all derived fields in one write."""
    values = reset_values()
    for name, value in values.items():
        setattr(work, name, value)
    work.save(update_fields=list(values))
    logger.info(f"Work {work.id}: reset to uploaded")
    return work
