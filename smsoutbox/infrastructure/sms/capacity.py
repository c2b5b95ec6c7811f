from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Callable, Iterable

from smsoutbox.domain.ports.capacity_oracle import CapacityOraclePort

logger = logging.getLogger(__name__)


class SlidingWindowCapacity(CapacityOraclePort):
    """
    Per-channel rolling window: each channel may send at most
    `max_parts_per_window` parts within any `window_seconds` span.
    Channels are tried in the order given.
    """

    def __init__(
        self,
        channels: Iterable[str],
        *,
        max_parts_per_window: int = 100,
        window_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.channels = list(channels)
        if not self.channels:
            raise ValueError("at least one sending channel is required")
        self.max_parts_per_window = max_parts_per_window
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # (sent_at, num_parts), oldest first
        self._sent: dict[str, deque[tuple[float, int]]] = {c: deque() for c in self.channels}

    def _prune(self, channel: str, now: float) -> int:
        window = self._sent[channel]
        cutoff = now - self.window_seconds
        while window and window[0][0] <= cutoff:
            window.popleft()
        return sum(parts for _, parts in window)

    def choose_channel(self, num_parts: int) -> str | None:
        with self._lock:
            now = self._clock()
            for channel in self.channels:
                used = self._prune(channel, now)
                if used + num_parts <= self.max_parts_per_window:
                    self._sent[channel].append((now, num_parts))
                    return channel
            return None

    def next_valid_time(self, num_parts: int) -> float:
        with self._lock:
            now = self._clock()
            if num_parts > self.max_parts_per_window:
                # can never fit; let the caller back off a full window
                return now + self.window_seconds

            best: float | None = None
            for channel in self.channels:
                remaining = self._prune(channel, now)
                if remaining + num_parts <= self.max_parts_per_window:
                    return now
                for sent_at, parts in self._sent[channel]:
                    remaining -= parts
                    if remaining + num_parts <= self.max_parts_per_window:
                        candidate = sent_at + self.window_seconds
                        if best is None or candidate < best:
                            best = candidate
                        break
            return best if best is not None else now + self.window_seconds

    def usage(self) -> dict[str, int]:
        with self._lock:
            now = self._clock()
            return {channel: self._prune(channel, now) for channel in self.channels}
