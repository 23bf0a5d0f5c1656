from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol


class TaskRunner(Protocol):
  """Interface for scheduling background song pipelines."""

  def submit(self, key: str, factory: Callable[[], Awaitable[None]]) -> None:
    """Schedule work identified by `key` (a song id)."""
    ...

  async def wait_for(self, key: str) -> None:
    """Wait until the work scheduled under `key` finishes. Returns immediately when none is tracked."""
    ...

  async def shutdown(self) -> None:
    """Cancel outstanding work and wait for it to unwind."""
    ...
