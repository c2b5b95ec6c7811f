from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from smsoutbox.domain.entities import OutgoingMessage


class SendResultListener(Protocol):
    def message_sent(self, message: "OutgoingMessage") -> None:
        """The transport delivered every part of the message."""

    def message_failed(self, message: "OutgoingMessage", error: str) -> None:
        """The transport gave up on the message."""


class TransportPort(Protocol):
    def try_send(
        self,
        message: "OutgoingMessage",
        parts: list[str],
        channel: str,
        listener: SendResultListener,
    ) -> None:
        """
        Start sending without blocking. Exactly one of listener.message_sent /
        listener.message_failed is called later, possibly from another thread.
        """
