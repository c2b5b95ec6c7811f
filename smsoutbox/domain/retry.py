from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    base: int = 60  # base delay (seconds)
    max_delay: int = 86400  # cap (seconds)
    max_retries: int = 4

    def compute_delay(self, attempts: int) -> int:
        # attempts is the number of failed attempts *before* this one
        # next delay = min(max_delay, base * 10**(attempts))
        delay = self.base * (10**attempts)
        return delay if delay < self.max_delay else self.max_delay

    def allows(self, num_retries: int) -> bool:
        return num_retries <= self.max_retries
