from typing import Protocol


class SegmenterPort(Protocol):
    def divide_message(self, body: str) -> list[str]:
        """Split a message body into the ordered parts the transport will send."""
