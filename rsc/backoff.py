"""Exponential reconnect backoff."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_BACKOFF_INITIAL,
    DEFAULT_BACKOFF_MAXIMUM,
)


class BackoffPolicy(BaseModel):
    """Maps a failed-attempt count to the wait before the next attempt.

    With the defaults the delays are 1, 2, 4, 8, 16, 30, 30, ... seconds.
    The session resets its attempt count to zero on every successful connect.
    """

    model_config = ConfigDict(frozen=True)

    initial: float = Field(DEFAULT_BACKOFF_INITIAL, gt=0, description="Delay after the first failure (s)")
    factor: float = Field(DEFAULT_BACKOFF_FACTOR, ge=1, description="Growth per failed attempt")
    maximum: float = Field(DEFAULT_BACKOFF_MAXIMUM, gt=0, description="Delay cap (s)")

    @model_validator(mode="after")
    def _check_cap(self) -> "BackoffPolicy":
        if self.maximum < self.initial:
            raise ValueError("maximum must be >= initial")
        return self

    def delay(self, attempt: int) -> float:
        """Return the wait in seconds before retry number ``attempt`` (0-based)."""
        if attempt < 0:
            raise ValueError("attempt must be >= 0")
        wait = self.initial
        if self.factor == 1:
            return wait
        for _ in range(attempt):
            wait *= self.factor
            if wait >= self.maximum:
                return self.maximum
        return min(wait, self.maximum)

    def delays(self, count: int) -> list[float]:
        """First ``count`` delays of the schedule."""
        return [self.delay(n) for n in range(count)]
