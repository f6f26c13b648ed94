# eldercare/engine/autosave.py
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from ..logging_config import log_event, log_failure
from .persistence import Failed
from .state import AssessmentFormState


class AutoSaveScheduler:
    """
    Debounced draft saver.

    ``notify()`` is called after every edit or unsaved-flag change; it
    (re)starts a single quiet-period timer. When the timer runs out and the
    form is still dirty with auto-save enabled, ``save_draft`` is awaited
    once. A save that has started is never cancelled by later edits.
    """

    def __init__(
        self,
        save_draft: Callable[[], Awaitable[Any]],
        get_state: Callable[[], AssessmentFormState],
        quiet_period: float = 30.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._save_draft = save_draft
        self._get_state = get_state
        self.quiet_period = quiet_period
        self._sleep = sleep
        self._timer: Optional[asyncio.Task] = None
        self._closed = False
        self.last_outcome: Any = None
        self.fired = 0

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def _should_save(self) -> bool:
        state = self._get_state()
        return state.data.metadata.auto_save_enabled and state.has_unsaved_changes

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def notify(self) -> None:
        if self._closed:
            return
        self.cancel()
        if not self._should_save():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # synchronous callers (scripts, plain unit tests) get no timer
            return
        self._timer = loop.create_task(self._countdown())

    async def _countdown(self) -> None:
        await self._sleep(self.quiet_period)
        # detach first: edits made during the save must not cancel it
        self._timer = None
        if self._closed or not self._should_save():
            return

        self.fired += 1
        log_event("AUTOSAVE_FIRED", "quiet period elapsed, saving draft", {"quiet_period": self.quiet_period})
        try:
            self.last_outcome = await self._save_draft()
        except Exception as e:
            # flag stays set, the next edit schedules another attempt
            self.last_outcome = Failed(e)
            log_failure("AUTOSAVE_FAILED", {"error": str(e), "type": type(e).__name__})

    def close(self) -> None:
        self._closed = True
        self.cancel()
