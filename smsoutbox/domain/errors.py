class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class MessageRejected(DomainError):
    """A submitted message failed validation and will not be tracked."""

    reason = "Message rejected"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or self.reason)
        if reason:
            self.reason = reason


class EmptyDestination(MessageRejected):
    """The destination address is missing or blank."""

    reason = "Destination address is empty"


class NotATestDestination(MessageRejected):
    """Test mode is on and the destination is not an allow-listed number."""

    reason = "Destination number is not in list of test senders"


class EmptyBody(MessageRejected):
    """The message body is missing or empty."""

    reason = "Message body is empty"


class TooManyParts(DomainError):
    """The body splits into more segments than a single message may use."""

    def __init__(self, num_parts: int) -> None:
        super().__init__(f"Message has too many parts ({num_parts})")
        self.num_parts = num_parts


class MessageNotFound(DomainError):
    """No tracked message matches the given uri."""

    pass
