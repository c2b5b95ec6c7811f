from __future__ import annotations

import heapq
import itertools
from typing import Iterator

from smsoutbox.domain.entities import OutgoingMessage


class MessageQueue:
    """
    Binary heap of outgoing messages in dispatch order: descending priority,
    then ascending local id. Not thread-safe; the Outbox guards it.
    """

    def __init__(self) -> None:
        self._heap: list[tuple[int, int, int, OutgoingMessage]] = []
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, message: OutgoingMessage) -> bool:
        return any(entry[3] is message for entry in self._heap)

    def __iter__(self) -> Iterator[OutgoingMessage]:
        # dispatch order, without disturbing the heap
        for entry in sorted(self._heap, key=lambda e: e[:3]):
            yield entry[3]

    def push(self, message: OutgoingMessage) -> None:
        priority, local_id = message.order_key
        heapq.heappush(self._heap, (priority, local_id, next(self._seq), message))

    def peek(self) -> OutgoingMessage | None:
        if not self._heap:
            return None
        return self._heap[0][3]

    def pop(self) -> OutgoingMessage | None:
        if not self._heap:
            return None
        return heapq.heappop(self._heap)[3]

    def remove(self, message: OutgoingMessage) -> bool:
        for i, entry in enumerate(self._heap):
            if entry[3] is message:
                last = self._heap.pop()
                if i < len(self._heap):
                    self._heap[i] = last
                    heapq.heapify(self._heap)
                return True
        return False
