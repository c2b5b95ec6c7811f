from typing import Protocol


class ChangeObserverPort(Protocol):
    def notify_changed(self) -> None:
        """The set of tracked messages or their states changed."""
