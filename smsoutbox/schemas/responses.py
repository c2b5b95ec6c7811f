from typing import Literal

from pydantic import BaseModel, Field

from smsoutbox.domain.entities import OutgoingMessage, ProcessingState
from smsoutbox.domain.outbox import OutboxStats


class AcceptedOut(BaseModel):
    status: Literal["accepted"] = "accepted"
    uri: str


class DuplicateOut(BaseModel):
    status: Literal["duplicate"] = "duplicate"
    uri: str


class MessageOut(BaseModel):
    uri: str = Field(..., description="Key of the message in the outbox")
    local_id: int
    to: str | None
    priority: int
    state: ProcessingState
    server_id: str | None = None
    num_retries: int = 0
    next_retry_time: float | None = None

    @classmethod
    def from_entity(cls, message: OutgoingMessage) -> "MessageOut":
        return cls(
            uri=message.uri,
            local_id=message.local_id,
            to=message.to,
            priority=message.priority,
            state=message.processing_state,
            server_id=message.server_id,
            num_retries=message.num_retries,
            next_retry_time=message.next_retry_time or None,
        )


class OutboxStatsOut(BaseModel):
    tracked: int
    queued: int
    sending: int
    next_valid_time: float | None = None

    @classmethod
    def from_stats(cls, stats: OutboxStats) -> "OutboxStatsOut":
        return cls(
            tracked=stats.tracked,
            queued=stats.queued,
            sending=stats.sending,
            next_valid_time=stats.next_valid_time or None,
        )


class MessageListOut(BaseModel):
    messages: list[MessageOut]
    stats: OutboxStatsOut
    version: int = Field(..., description="Bumped on every outbox change")


class OkOut(BaseModel):
    status: Literal["ok"] = "ok"
