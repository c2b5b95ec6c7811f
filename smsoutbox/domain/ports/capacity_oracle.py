from typing import Protocol


class CapacityOraclePort(Protocol):
    def choose_channel(self, num_parts: int) -> str | None:
        """
        Return the channel that can send `num_parts` parts right now (and
        account for them), or None when no channel has capacity.
        """

    def next_valid_time(self, num_parts: int) -> float:
        """Epoch seconds at which some channel is expected to have room again."""
