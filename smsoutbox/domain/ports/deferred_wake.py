from typing import Callable, Protocol


class DeferredWakePort(Protocol):
    def schedule(self, key: str, at: float, callback: Callable[[], None]) -> None:
        """
        Call `callback` once at (or after) epoch time `at`. Scheduling a key
        that is already pending replaces the earlier callback.
        """

    def cancel(self, key: str) -> None:
        """Drop the pending callback for `key`, if any."""
