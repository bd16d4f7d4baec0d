"""Pydantic models for rate-limit policies, counter records and verdicts."""
import math

from pydantic import BaseModel, ConfigDict


class RateLimitPolicy(BaseModel):
    """Maximum ``limit`` requests per ``window_ms`` milliseconds.

    Non-positive values are accepted: a non-positive limit denies everything,
    a non-positive window makes every request open a fresh window.
    """

    model_config = ConfigDict(frozen=True)

    limit: int
    window_ms: int


class CounterRecord(BaseModel):
    count: int
    reset_at: int  # ms since epoch


class Verdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    remaining: int
    reset_at: int  # ms since epoch
    retry_after_ms: int

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds for a ``Retry-After`` header, rounded up."""
        return math.ceil(self.retry_after_ms / 1000)

    @property
    def reset_at_seconds(self) -> int:
        return math.ceil(self.reset_at / 1000)


class PolicyResponse(BaseModel):
    name: str
    limit: int
    window_ms: int
