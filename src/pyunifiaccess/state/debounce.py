"""Per-key cancellable delayed actions.

Used to auto-resolve transient contact "open" pulses: hardware such as a
request-to-exit button reports the press but never a matching release.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

_logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]
"""``(delay_seconds, callback) -> handle``; same shape as ``loop.call_later``."""


def _loop_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class DebounceTimers:
    """At most one pending action per key.

    Arming a key that already has a pending action cancels it first, so two
    timers for the same device can never race. All calls must come from the
    event loop thread.
    """

    def __init__(self, *, scheduler: Scheduler | None = None) -> None:
        self._scheduler = scheduler or _loop_scheduler
        self._pending: dict[str, TimerHandle] = {}

    def arm(self, key: str, delay: float, action: Callable[[], None]) -> None:
        """Schedule *action* after *delay* seconds, replacing any pending one."""
        self.cancel(key)

        handle: TimerHandle | None = None

        def _fire() -> None:
            # A replaced timer whose cancel raced its callback must not run.
            if self._pending.get(key) is not handle:
                return
            del self._pending[key]
            try:
                action()
            except Exception:
                _logger.exception("Debounce action failed for %s", key)

        handle = self._scheduler(delay, _fire)
        self._pending[key] = handle

    def cancel(self, key: str) -> bool:
        """Cancel the pending action for *key*. Returns True if one existed."""
        handle = self._pending.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        handles = list(self._pending.values())
        self._pending.clear()
        for handle in handles:
            handle.cancel()

    def pending(self, key: str) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)
