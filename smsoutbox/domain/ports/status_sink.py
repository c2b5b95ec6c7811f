from typing import Literal, Protocol

MessageStatus = Literal["queued", "sent", "failed"]


class StatusSinkPort(Protocol):
    def report(self, server_id: str, status: MessageStatus, error: str) -> None:
        """Tell the originating server what happened. Fire-and-forget."""
