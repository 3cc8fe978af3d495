"""
WebSocket Consumer for live work state

Protocol:
1. Client connects to /ws/works/{work_id}/?token=<jwt>
2. Server sends the full snapshot on connect and after every stage change:
   - {"type": "snapshot", "work": {...}}
   - {"type": "status", "status": "completed", "message": "Analysis complete"}
   - {"type": "stage", "stage": "artwork", "state": "running"}
3. Client sends:
   - {"type": "refresh"}
   - {"type": "notes", "notes": [{"id": "zone1", "content": "..."}, ...]}
   - {"type": "description", "text": "..."}
   Notes and description edits are debounced and autosaved:
   - {"type": "autosave", "field": "notes", "state": "saved"}
"""

import asyncio
import json
import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import AccessToken

from .autosave import AutosaveController
from .models import Work
from .notifications import group_name
from .serializers import WorkUpdateSerializer, work_snapshot

logger = logging.getLogger(__name__)

AUTOSAVE_FIELDS = ("notes", "description")


class WorkConsumer(AsyncWebsocketConsumer):
    """
    WebSocket consumer pushing derived work state to the owner.

    Joins the ``work_{id}`` channel group to receive stage notifications
    from Celery workers.
    """

    async def connect(self):
        """Handle WebSocket connection."""
        self.work_id = str(self.scope["url_route"]["kwargs"]["work_id"])
        self.autosave = {}
        self._pending_sends: set[asyncio.Task] = set()

        query_string = self.scope.get("query_string", b"").decode()
        params = parse_qs(query_string)

        token = params.get("token", [None])[0]
        if not token:
            await self.close(code=4001)  # Unauthorized
            return
        try:
            self.user_id = AccessToken(token)["user_id"]
        except (InvalidToken, TokenError, KeyError):
            await self.close(code=4001)
            return

        work = await database_sync_to_async(self._load_work)()
        if work is None:
            await self.close(code=4004)  # Not found
            return

        self.group_name = group_name(self.work_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

        delay = settings.WORK_AUTOSAVE_DELAY_SECONDS
        for field in AUTOSAVE_FIELDS:
            self.autosave[field] = AutosaveController(
                save=self._saver(field),
                initial=getattr(work, field),
                delay=delay,
                on_state=self._state_notifier(field),
            )

        await self.send_snapshot()

    async def disconnect(self, close_code):
        """Flush pending edits, drop unsent autosave notices and leave the channel group."""
        for controller in getattr(self, "autosave", {}).values():
            await controller.close()
        sends = list(getattr(self, "_pending_sends", ()))
        for task in sends:
            task.cancel()
        if sends:
            await asyncio.gather(*sends, return_exceptions=True)
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    def _load_work(self) -> Work | None:
        return Work.get_or_none(self.work_id, user=self.user_id)

    def _save_field(self, field: str, value):
        work = self._load_work()
        if work is None:
            raise LookupError(f"Work {self.work_id} no longer exists")
        setattr(work, field, value)
        work.save(update_fields=[field])

    def _saver(self, field: str):
        async def save(value):
            await database_sync_to_async(self._save_field)(field, value)

        return save

    def _state_notifier(self, field: str):
        def notify(state: str):
            task = asyncio.ensure_future(
                self.send_json({"type": "autosave", "field": field, "state": state})
            )
            self._pending_sends.add(task)
            task.add_done_callback(self._send_done)

        return notify

    def _send_done(self, task: asyncio.Task):
        self._pending_sends.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Autosave notice for work {self.work_id} not sent: {task.exception()}")

    async def send_snapshot(self):
        """Send the current derived state to the client."""
        snapshot = await database_sync_to_async(self._snapshot)()
        if snapshot is None:
            await self.send_error("Work not found")
            return
        await self.send_json({"type": "snapshot", "work": snapshot})

    def _snapshot(self) -> dict | None:
        work = self._load_work()
        return work_snapshot(work) if work else None

    # Handlers for Celery notifications (via channel layer)
    async def work_status(self, event):
        await self.send_json({
            "type": "status",
            "status": event["status"],
            "message": event["message"],
        })
        await self.send_snapshot()

    async def work_stage(self, event):
        await self.send_json({
            "type": "stage",
            "stage": event["stage"],
            "state": event["state"],
        })
        await self.send_snapshot()

    async def receive(self, text_data):
        """Handle incoming message from client."""
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            await self.send_error("Invalid JSON")
            return

        msg_type = data.get("type")

        if msg_type == "refresh":
            await self.send_snapshot()

        elif msg_type == "notes":
            serializer = WorkUpdateSerializer(data={"notes": data.get("notes")}, partial=True)
            if not serializer.is_valid():
                await self.send_error(f"Invalid notes: {serializer.errors}")
                return
            self.autosave["notes"].update(serializer.validated_data["notes"])

        elif msg_type == "description":
            text = data.get("text")
            if text is not None and not isinstance(text, str):
                await self.send_error("Description must be text")
                return
            self.autosave["description"].update(text)

        else:
            await self.send_error(f"Unknown message type: {msg_type}")

    async def send_json(self, data: dict):
        """Send JSON message to client."""
        await self.send(text_data=json.dumps(data))

    async def send_error(self, message: str):
        """Send error message to client."""
        await self.send_json({
            "type": "error",
            "message": message,
        })
