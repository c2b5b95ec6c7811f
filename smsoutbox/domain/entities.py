from __future__ import annotations

import itertools
import secrets
import threading
from dataclasses import dataclass, field
from enum import Enum

from smsoutbox.domain.retry import RetryPolicy

_local_ids = itertools.count(1)
_local_ids_lock = threading.Lock()


def next_local_id() -> int:
    """Allocate the next submission-order id. Never reused within a process."""
    with _local_ids_lock:
        return next(_local_ids)


def make_uri(server_id: str | None = None) -> str:
    """
    Messages relayed from the server are keyed by their server id so that a
    second delivery of the same server message collapses onto the first.
    """
    if server_id:
        return f"srv-{server_id}"
    return f"msg-{secrets.token_hex(8)}"


class ProcessingState(str, Enum):
    NONE = "none"  # not queued or in flight; also the parked state
    SCHEDULED = "scheduled"  # failed once, waiting for a retry
    QUEUED = "queued"
    SENDING = "sending"
    SENT = "sent"


@dataclass(eq=False)
class OutgoingMessage:
    uri: str
    to: str | None
    message_body: str | None
    priority: int = 0
    server_id: str | None = None
    local_id: int = field(default_factory=next_local_id)
    processing_state: ProcessingState = ProcessingState.NONE
    num_retries: int = 0
    next_retry_time: float = 0.0
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

    @property
    def log_name(self) -> str:
        return f"SMS reply to {self.to}"

    @property
    def description(self) -> str:
        return f"SMS to {self.to}"

    @property
    def order_key(self) -> tuple[int, int]:
        # higher priority first, then earliest submitted
        return (-self.priority, self.local_id)

    def schedule_retry(self, now: float) -> bool:
        """
        Record a failed attempt. Returns True and sets next_retry_time when
        the retry policy allows another attempt, False once it is exhausted.
        """
        self.num_retries += 1
        if not self.retry_policy.allows(self.num_retries):
            self.next_retry_time = 0.0
            return False
        delay = self.retry_policy.compute_delay(self.num_retries - 1)
        self.next_retry_time = now + delay
        return True
