"""Backoff delays for polling external jobs."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BackoffPolicy:
  """
  Exponential delay schedule with an upper bound.

  delay(attempt) = min(interval * multiplier**attempt, cap)
  """

  interval_seconds: float = 30.0
  multiplier: float = 1.5
  cap_seconds: float = 120.0

  def delay_for(self, attempt: int) -> float:
    """Return the delay to wait after a transport error on zero-based `attempt`."""
    if attempt < 0:
      attempt = 0
    return min(self.interval_seconds * (self.multiplier**attempt), self.cap_seconds)

  @classmethod
  def from_settings(cls, settings) -> BackoffPolicy:  # type: ignore[no-untyped-def]
    return cls(interval_seconds=settings.poll_interval_seconds, multiplier=settings.poll_backoff_multiplier, cap_seconds=settings.poll_backoff_cap_seconds)
