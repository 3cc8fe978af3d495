"""Tests for the work WebSocket consumer message handling."""

import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.works.consumers import WorkConsumer
from src.works.fields import NOTE_ZONES


def sent_messages(consumer):
    return [json.loads(c.kwargs["text_data"]) for c in consumer.send.call_args_list]


@pytest.fixture
def consumer():
    consumer = WorkConsumer()
    consumer.work_id = "8d3f4c8e-0000-0000-0000-000000000000"
    consumer.autosave = {"notes": MagicMock(), "description": MagicMock()}
    consumer.send = AsyncMock()
    consumer.send_snapshot = AsyncMock()
    consumer._pending_sends = set()
    return consumer


async def test_refresh_sends_snapshot(consumer):
    await consumer.receive(json.dumps({"type": "refresh"}))
    consumer.send_snapshot.assert_awaited_once()


async def test_notes_are_validated_and_autosaved(consumer):
    notes = [{"id": zone_id, "content": ""} for zone_id, _ in NOTE_ZONES]
    notes[0]["content"] = "A-B-A"

    await consumer.receive(json.dumps({"type": "notes", "notes": notes}))

    saved = consumer.autosave["notes"].update.call_args.args[0]
    assert saved[0] == {"id": "zone1", "title": NOTE_ZONES[0][1], "content": "A-B-A"}
    assert len(saved) == 4


async def test_invalid_notes_rejected(consumer):
    await consumer.receive(json.dumps({"type": "notes", "notes": [{"id": "zone1"}]}))

    consumer.autosave["notes"].update.assert_not_called()
    assert sent_messages(consumer)[0]["type"] == "error"


async def test_description_is_autosaved(consumer):
    await consumer.receive(json.dumps({"type": "description", "text": "Calm piano."}))
    consumer.autosave["description"].update.assert_called_once_with("Calm piano.")


async def test_description_must_be_text(consumer):
    await consumer.receive(json.dumps({"type": "description", "text": 42}))

    consumer.autosave["description"].update.assert_not_called()
    assert sent_messages(consumer)[0]["message"] == "Description must be text"


async def test_invalid_json(consumer):
    await consumer.receive("{not json")
    assert sent_messages(consumer)[0] == {"type": "error", "message": "Invalid JSON"}


async def test_unknown_message_type(consumer):
    await consumer.receive(json.dumps({"type": "dance"}))
    assert sent_messages(consumer)[0]["message"] == "Unknown message type: dance"


async def test_stage_notification_forwards_then_refreshes(consumer):
    await consumer.work_stage({"type": "work.stage", "stage": "artwork", "state": "running"})

    assert sent_messages(consumer) == [{"type": "stage", "stage": "artwork", "state": "running"}]
    consumer.send_snapshot.assert_awaited_once()


async def test_status_notification_forwards_then_refreshes(consumer):
    await consumer.work_status(
        {"type": "work.status", "status": "completed", "message": "Analysis complete"}
    )

    assert sent_messages(consumer)[0]["status"] == "completed"
    consumer.send_snapshot.assert_awaited_once()


async def test_autosave_notice_is_sent_and_released(consumer):
    consumer._state_notifier("notes")("saving")
    tasks = set(consumer._pending_sends)
    assert len(tasks) == 1

    await asyncio.gather(*tasks)
    await asyncio.sleep(0)

    assert sent_messages(consumer) == [{"type": "autosave", "field": "notes", "state": "saving"}]
    assert consumer._pending_sends == set()


async def test_failed_autosave_notice_is_logged(consumer, caplog):
    consumer.send = AsyncMock(side_effect=ConnectionError("socket closed"))
    consumer._state_notifier("description")("saved")

    with caplog.at_level(logging.WARNING, logger="src.works.consumers"):
        await asyncio.gather(*consumer._pending_sends, return_exceptions=True)
        await asyncio.sleep(0)

    assert "not sent: socket closed" in caplog.text
    assert consumer._pending_sends == set()


async def test_disconnect_cancels_unsent_autosave_notices(consumer):
    never = asyncio.Event()

    async def stuck_send(text_data):
        await never.wait()

    consumer.send = stuck_send
    consumer.autosave = {"notes": AsyncMock()}
    consumer._state_notifier("notes")("saved")
    task = next(iter(consumer._pending_sends))

    await consumer.disconnect(1000)

    consumer.autosave["notes"].close.assert_awaited_once()
    assert task.cancelled()
    assert consumer._pending_sends == set()


async def test_connect_without_token_closes():
    consumer = WorkConsumer()
    consumer.scope = {
        "url_route": {"kwargs": {"work_id": "8d3f4c8e-0000-0000-0000-000000000000"}},
        "query_string": b"",
    }
    consumer.close = AsyncMock()
    consumer.accept = AsyncMock()

    await consumer.connect()

    consumer.close.assert_awaited_once_with(code=4001)
    consumer.accept.assert_not_called()


async def test_connect_with_bad_token_closes():
    consumer = WorkConsumer()
    consumer.scope = {
        "url_route": {"kwargs": {"work_id": "8d3f4c8e-0000-0000-0000-000000000000"}},
        "query_string": b"token=not-a-jwt",
    }
    consumer.close = AsyncMock()
    consumer.accept = AsyncMock()

    await consumer.connect()

    consumer.close.assert_awaited_once_with(code=4001)
