"""Exponential backoff policy applied to failed notice deliveries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of evaluating the policy after a failed delivery.

    ``retry_at`` is ``None`` when the attempt budget is exhausted.
    """

    attempts: int
    retry_at: datetime | None

    @property
    def exhausted(self) -> bool:
        return self.retry_at is None


@dataclass(frozen=True)
class RetryPolicy:
    """Compute retry instants as ``min(base * 2^(attempts - 1), max_delay)``.

    Attempts are counted from 1 for the first failure. Once ``attempts``
    reaches ``max_attempts`` the notice is considered exhausted and no delay
    is computed.
    """

    base_delay: timedelta
    max_delay: timedelta
    max_attempts: int

    def __post_init__(self) -> None:
        if self.base_delay <= timedelta(0):
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be greater than or equal to base_delay")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_seconds(
        cls, *, base: float, maximum: float, max_attempts: int
    ) -> "RetryPolicy":
        return cls(
            base_delay=timedelta(seconds=base),
            max_delay=timedelta(seconds=maximum),
            max_attempts=max_attempts,
        )

    def delay_for(self, attempts: int) -> timedelta:
        """Return the backoff delay that follows failure number ``attempts``."""

        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        delay = self.base_delay
        # Doubling stops at the cap, so large attempt counts never overflow.
        for _ in range(attempts - 1):
            delay *= 2
            if delay >= self.max_delay:
                return self.max_delay
        return min(delay, self.max_delay)

    def is_exhausted(self, attempts: int) -> bool:
        return attempts >= self.max_attempts

    def evaluate(self, attempts: int, failed_at: datetime) -> RetryDecision:
        """Decide whether failure number ``attempts`` is retried or exhausted."""

        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        if self.is_exhausted(attempts):
            return RetryDecision(attempts=attempts, retry_at=None)
        return RetryDecision(
            attempts=attempts, retry_at=failed_at + self.delay_for(attempts)
        )


__all__ = ["RetryDecision", "RetryPolicy"]
