from __future__ import annotations

import logging
import threading
from typing import Callable

from smsoutbox.domain.ports.change_observer import ChangeObserverPort

logger = logging.getLogger(__name__)


class ChangeFeed(ChangeObserverPort):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._version = 0
        self._subscribers: list[Callable[[int], None]] = []

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def subscribe(self, callback: Callable[[int], None]) -> Callable[[], None]:
        """Register `callback(version)`; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def notify_changed(self) -> None:
        with self._lock:
            self._version += 1
            version = self._version
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(version)
            except Exception:  # noqa: BLE001
                logger.exception("change subscriber failed")
