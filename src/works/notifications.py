"""WebSocket notification helpers for pipeline stages."""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def group_name(work_id) -> str:
    return f"work_{work_id}"


def _group_send(work_id, event: dict):
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer available for notifications")
        return

    try:
        async_to_sync(channel_layer.group_send)(group_name(work_id), event)
    except Exception as e:
        logger.warning(f"Failed to send {event['type']} notification: {e}")


def notify_work_status(work_id, status: str, message: str = ""):
    """Push a status change to clients watching the work."""
    _group_send(
        work_id,
        {
            "type": "work.status",
            "status": status,
            "message": message,
        },
    )


def notify_stage_progress(work_id, stage: str, state: str):
    """Push a stage attempt state change to clients watching the work."""
    _group_send(
        work_id,
        {
            "type": "work.stage",
            "stage": stage,
            "state": state,
        },
    )
