"""
Debounced autosave for free-text fields (notes, description).

Each edit restarts a timer; when it fires the latest value is written
through ``save``. Edits equal to the last saved value, or to the value
being saved, cancel the pending write.
"""

import asyncio
import logging
import operator
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

IDLE = "idle"
DIRTY = "dirty"
SAVING = "saving"
SAVED = "saved"
ERROR = "error"


class AutosaveController:
    """
    Debounce edits to one field and persist the latest value.

    States: idle -> dirty -> saving -> saved | error. A failed save keeps
    the value pending so the next flush retries it.
    """

    def __init__(
        self,
        save: Callable[[Any], Awaitable[None]],
        initial: Any = None,
        delay: float = 1.5,
        equals: Callable[[Any, Any], bool] | None = None,
        on_state: Callable[[str], Any] | None = None,
    ):
        """
        Args:
            save: Coroutine function writing the value
            initial: The value currently persisted
            delay: Seconds of inactivity before saving
            equals: Comparison used to skip no-op saves
            on_state: Called with the new state on every change
        """
        self._save = save
        self._saved_value = initial
        self._pending: Any = None
        self._has_pending = False
        self._timer: asyncio.Task | None = None
        self._in_flight: Any = None
        self._saving = False
        self.delay = delay
        self.equals = equals or operator.eq
        self.on_state = on_state
        self.state = IDLE
        self.error: str | None = None

    def _set_state(self, state: str):
        self.state = state
        if self.on_state is not None:
            self.on_state(state)

    def _cancel_timer(self):
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    @property
    def saved_value(self):
        return self._saved_value

    def update(self, value):
        """Record an edit and (re)start the debounce timer."""
        self._cancel_timer()
        # While a save is running, the value being written is what will be persisted
        baseline = self._in_flight if self._saving else self._saved_value
        if self.equals(value, baseline):
            self._pending = None
            self._has_pending = False
            if self.state == DIRTY:
                if self._saving:
                    self._set_state(SAVING)
                else:
                    self._set_state(SAVED if self.error is None else IDLE)
            return

        self._pending = value
        self._has_pending = True
        self._set_state(DIRTY)
        self._timer = asyncio.create_task(self._flush_later())

    async def _flush_later(self):
        await asyncio.sleep(self.delay)
        self._timer = None
        await self.flush()

    async def flush(self):
        """Save the pending value now, if there is one."""
        self._cancel_timer()
        if not self._has_pending:
            return

        value = self._pending
        self._pending = None
        self._has_pending = False
        self._in_flight = value
        self._saving = True
        self._set_state(SAVING)
        try:
            await self._save(value)
        except Exception as e:
            logger.warning(f"Autosave failed: {e}")
            if not self._has_pending:
                self._pending = value
                self._has_pending = True
            self.error = str(e)
            self._set_state(ERROR)
            return
        finally:
            self._saving = False
            self._in_flight = None

        self.error = None
        self._saved_value = value
        if self._has_pending:
            # A different edit arrived while saving
            self._set_state(DIRTY)
            if self._timer is None:
                self._timer = asyncio.create_task(self._flush_later())
            return
        self._set_state(SAVED)

    async def close(self):
        """Flush any pending edit before the owner goes away."""
        await self.flush()
