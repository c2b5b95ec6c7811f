from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Callable

from smsoutbox.domain.ports.deferred_wake import DeferredWakePort

logger = logging.getLogger(__name__)


class LoopWakeTimer(DeferredWakePort):
    """
    Keyed single-shot timers on an asyncio loop. Safe to call from any
    thread; re-scheduling a key cancels the pending handle first.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._loop = loop
        self._clock = clock
        self._handles: dict[str, asyncio.TimerHandle] = {}
        self._lock = threading.Lock()

    def schedule(self, key: str, at: float, callback: Callable[[], None]) -> None:
        delay = max(0.0, at - self._clock())
        self._loop.call_soon_threadsafe(self._arm, key, delay, callback)

    def cancel(self, key: str) -> None:
        self._loop.call_soon_threadsafe(self._disarm, key)

    def pending(self) -> list[str]:
        with self._lock:
            return sorted(self._handles)

    def _arm(self, key: str, delay: float, callback: Callable[[], None]) -> None:
        with self._lock:
            previous = self._handles.pop(key, None)
            if previous is not None:
                previous.cancel()
            self._handles[key] = self._loop.call_later(delay, self._fire, key, callback)

    def _disarm(self, key: str) -> None:
        with self._lock:
            handle = self._handles.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _fire(self, key: str, callback: Callable[[], None]) -> None:
        with self._lock:
            self._handles.pop(key, None)
        try:
            callback()
        except Exception:  # noqa: BLE001
            logger.exception("deferred callback failed", extra={"key": key})

    def close(self) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.cancel()
