from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from smsoutbox.domain.entities import OutgoingMessage, ProcessingState
from smsoutbox.domain.errors import (
    EmptyBody,
    EmptyDestination,
    MessageRejected,
    NotATestDestination,
    TooManyParts,
)
from smsoutbox.domain.message_queue import MessageQueue
from smsoutbox.domain.ports.capacity_oracle import CapacityOraclePort
from smsoutbox.domain.ports.change_observer import ChangeObserverPort
from smsoutbox.domain.ports.deferred_wake import DeferredWakePort
from smsoutbox.domain.ports.segmenter import SegmenterPort
from smsoutbox.domain.ports.status_sink import MessageStatus, StatusSinkPort
from smsoutbox.domain.ports.transport import TransportPort

logger = logging.getLogger("smsoutbox.domain.outbox")

STATUS_QUEUED: MessageStatus = "queued"
STATUS_SENT: MessageStatus = "sent"
STATUS_FAILED: MessageStatus = "failed"

DEQUEUE_WAKE_KEY = "dequeue"


def _retry_key(uri: str) -> str:
    return f"retry:{uri}"


@dataclass(frozen=True)
class SubmitResult:
    uri: str
    accepted: bool
    duplicate: bool = False
    error: str | None = None


@dataclass(frozen=True)
class OutboxStats:
    tracked: int
    queued: int
    sending: int
    next_valid_time: float


class Outbox:
    """
    Priority-ordered dispatch queue for outgoing messages.

    Every public method runs under one re-entrant lock, so submissions,
    transport callbacks and timer wakes can call in from any thread. At most
    `max_sending` messages are handed to the transport at a time, and the
    capacity oracle decides whether the head of the queue may go now or
    must wait for a deferred wake.
    """

    def __init__(
        self,
        *,
        segmenter: SegmenterPort,
        capacity: CapacityOraclePort,
        transport: TransportPort,
        timer: DeferredWakePort,
        status_sink: StatusSinkPort,
        observer: ChangeObserverPort,
        max_sending: int = 2,
        max_parts: int = 100,
        min_wake_delay: float = 2.0,
        test_mode: bool = False,
        test_numbers: Iterable[str] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._segmenter = segmenter
        self._capacity = capacity
        self._transport = transport
        self._timer = timer
        self._status_sink = status_sink
        self._observer = observer
        self.max_sending = max_sending
        self.max_parts = max_parts
        self.min_wake_delay = min_wake_delay
        self.test_mode = test_mode
        self.test_numbers = frozenset(test_numbers)
        self._clock = clock

        self._lock = threading.RLock()
        self._messages: dict[str, OutgoingMessage] = {}
        self._queue = MessageQueue()
        # messages handed to the transport, waiting for message_sent/message_failed
        self._num_sending = 0
        # cache of the next time the queue head may be sent without exceeding
        # the transport's rate limit
        self._next_valid_time = 0.0

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    def get_message(self, uri: str) -> OutgoingMessage | None:
        with self._lock:
            return self._messages.get(uri)

    def messages(self) -> list[OutgoingMessage]:
        with self._lock:
            return list(self._messages.values())

    def queued_messages(self) -> list[OutgoingMessage]:
        with self._lock:
            return list(self._queue)

    def size(self) -> int:
        with self._lock:
            return len(self._messages)

    def stats(self) -> OutboxStats:
        with self._lock:
            return OutboxStats(
                tracked=len(self._messages),
                queued=len(self._queue),
                sending=self._num_sending,
                next_valid_time=self._next_valid_time,
            )

    # ------------------------------------------------------------------
    # submission
    # ------------------------------------------------------------------

    def validate(self, message: OutgoingMessage) -> None:
        if not message.to:
            raise EmptyDestination()
        if self.test_mode and message.to not in self.test_numbers:
            # keeps a test deployment from texting real people
            raise NotATestDestination()
        if not message.message_body:
            raise EmptyBody()

    def send_message(self, message: OutgoingMessage) -> SubmitResult:
        with self._lock:
            try:
                self.validate(message)
            except MessageRejected as e:
                self._notify_message_status(message, STATUS_FAILED, e.reason)
                return SubmitResult(uri=message.uri, accepted=False, error=e.reason)

            if message.uri in self._messages:
                logger.debug(
                    "duplicate outgoing message, skipping",
                    extra={"uri": message.uri, "log_name": message.log_name},
                )
                return SubmitResult(uri=message.uri, accepted=False, duplicate=True)

            self._messages[message.uri] = message
            self.enqueue_message(message)
            return SubmitResult(uri=message.uri, accepted=True)

    def enqueue_message(self, message: OutgoingMessage) -> None:
        with self._lock:
            if message.processing_state not in (
                ProcessingState.NONE,
                ProcessingState.SCHEDULED,
            ):
                return
            self._queue.push(message)
            message.processing_state = ProcessingState.QUEUED
            self._notify_changed()
            self.maybe_dequeue_message()

    def retry_message(self, uri: str) -> None:
        """Deferred-retry entry point: re-enqueue if still waiting on a retry."""
        with self._lock:
            message = self._messages.get(uri)
            if message is None or message.processing_state != ProcessingState.SCHEDULED:
                return
            logger.info(
                "retrying message",
                extra={"uri": uri, "num_retries": message.num_retries},
            )
            self.enqueue_message(message)

    def retry_all(self) -> None:
        with self._lock:
            self._next_valid_time = 0.0
            for message in list(self._messages.values()):
                self.enqueue_message(message)
            self.maybe_dequeue_message()

    # ------------------------------------------------------------------
    # dispatch
    # ------------------------------------------------------------------

    def maybe_dequeue_message(self) -> None:
        with self._lock:
            now = self._clock()
            if self._next_valid_time > now or self._num_sending >= self.max_sending:
                return

            while True:
                message = self._queue.peek()
                if message is None:
                    return

                parts = self._segmenter.divide_message(message.message_body or "")
                num_parts = len(parts)
                if num_parts <= self.max_parts:
                    break

                # the next head must not wait for an unrelated trigger
                self._queue.pop()
                self._messages.pop(message.uri, None)
                message.processing_state = ProcessingState.NONE
                error = TooManyParts(num_parts)
                self._notify_message_status(message, STATUS_FAILED, str(error))
                self._notify_changed()

            channel = self._capacity.choose_channel(num_parts)
            if channel is None:
                self._defer(num_parts, now)
                return

            self._queue.pop()
            self._num_sending += 1
            message.processing_state = ProcessingState.SENDING
            logger.info(
                "dispatching message",
                extra={
                    "uri": message.uri,
                    "parts": num_parts,
                    "channel": channel,
                    "sending": self._num_sending,
                },
            )
            self._transport.try_send(message, parts, channel, self)
            self._notify_changed()

    def _on_wake(self) -> None:
        with self._lock:
            # a wake that lands early re-arms instead of leaving the head stranded
            if (
                self._next_valid_time > self._clock()
                and len(self._queue)
                and self._num_sending < self.max_sending
            ):
                self._timer.schedule(DEQUEUE_WAKE_KEY, self._next_valid_time, self._on_wake)
                return
            self.maybe_dequeue_message()

    def _defer(self, num_parts: int, now: float) -> None:
        next_valid_time = self._capacity.next_valid_time(num_parts)
        if next_valid_time <= now:  # should never happen
            next_valid_time = now + self.min_wake_delay
        self._next_valid_time = next_valid_time

        logger.info(
            "rate limited, waiting",
            extra={"wait_seconds": int(next_valid_time - now), "parts": num_parts},
        )
        self._timer.schedule(DEQUEUE_WAKE_KEY, next_valid_time, self._on_wake)

    # ------------------------------------------------------------------
    # transport callbacks
    # ------------------------------------------------------------------

    def _is_in_flight(self, message: OutgoingMessage) -> bool:
        tracked = self._messages.get(message.uri)
        if tracked is not message or message.processing_state != ProcessingState.SENDING:
            logger.debug(
                "ignoring result for message no longer in flight",
                extra={"uri": message.uri, "state": message.processing_state.value},
            )
            return False
        return True

    def message_sent(self, message: OutgoingMessage) -> None:
        with self._lock:
            if not self._is_in_flight(message):
                return
            message.processing_state = ProcessingState.SENT
            self._notify_message_status(message, STATUS_SENT, "")
            self._messages.pop(message.uri, None)
            self._notify_changed()

            self._num_sending -= 1
            self.maybe_dequeue_message()

    def message_failed(self, message: OutgoingMessage, error: str) -> None:
        with self._lock:
            if not self._is_in_flight(message):
                return
            if message.schedule_retry(self._clock()):
                message.processing_state = ProcessingState.SCHEDULED
                self._timer.schedule(
                    _retry_key(message.uri),
                    message.next_retry_time,
                    lambda uri=message.uri: self.retry_message(uri),
                )
            else:
                message.processing_state = ProcessingState.NONE
            self._notify_changed()
            self._notify_message_status(message, STATUS_FAILED, error)

            self._num_sending -= 1
            self.maybe_dequeue_message()

    # ------------------------------------------------------------------
    # deletion
    # ------------------------------------------------------------------

    def delete_message(self, message: OutgoingMessage) -> None:
        with self._lock:
            if self._messages.get(message.uri) is not message:
                logger.debug("delete of untracked message", extra={"uri": message.uri})
                return
            del self._messages[message.uri]

            if message.processing_state == ProcessingState.QUEUED:
                self._queue.remove(message)
            elif message.processing_state == ProcessingState.SENDING:
                self._num_sending -= 1
            self._timer.cancel(_retry_key(message.uri))
            message.processing_state = ProcessingState.NONE

            self._notify_message_status(message, STATUS_FAILED, "deleted by user")
            logger.info("%s deleted", message.description, extra={"uri": message.uri})
            self._notify_changed()
            self.maybe_dequeue_message()

    # ------------------------------------------------------------------
    # notifications
    # ------------------------------------------------------------------

    def _notify_message_status(
        self, message: OutgoingMessage, status: MessageStatus, error: str
    ) -> None:
        if status == STATUS_SENT:
            outcome = "sent successfully"
        elif status == STATUS_FAILED:
            outcome = f"could not be sent ({error})"
        else:
            outcome = "queued"

        if message.server_id is None:
            logger.info("%s %s", message.log_name, outcome, extra={"uri": message.uri})
            return

        logger.info(
            "notifying server: %s %s",
            message.log_name,
            outcome,
            extra={"uri": message.uri, "server_id": message.server_id},
        )
        try:
            self._status_sink.report(message.server_id, status, error)
        except Exception:  # noqa: BLE001
            logger.exception(
                "status report failed", extra={"server_id": message.server_id}
            )

    def _notify_changed(self) -> None:
        try:
            self._observer.notify_changed()
        except Exception:  # noqa: BLE001
            logger.exception("change observer failed")
