from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from app.services.tasks.interface import TaskRunner

logger = logging.getLogger(__name__)


class InProcessTaskRunner(TaskRunner):
  """Runs background work as asyncio tasks on the serving event loop and keeps their handles."""

  def __init__(self) -> None:
    self._tasks: dict[str, asyncio.Task[None]] = {}

  def submit(self, key: str, factory: Callable[[], Awaitable[None]]) -> None:
    existing = self._tasks.get(key)
    if existing is not None and not existing.done():
      raise RuntimeError(f"Background work already running for {key}.")

    async def _run() -> None:
      await factory()

    task = asyncio.create_task(_run(), name=f"song-pipeline-{key}")
    self._tasks[key] = task
    task.add_done_callback(lambda finished: self._on_done(key, finished))
    logger.info("Scheduled background work for %s", key)

  def _on_done(self, key: str, task: asyncio.Task[None]) -> None:
    if self._tasks.get(key) is task:
      self._tasks.pop(key, None)
    if task.cancelled():
      logger.warning("Background work for %s was cancelled.", key)
      return
    exc = task.exception()
    if exc is not None:
      logger.error("Background work for %s crashed: %s", key, exc, exc_info=exc)

  def get(self, key: str) -> asyncio.Task[None] | None:
    """Return the live handle for `key`, if any."""
    return self._tasks.get(key)

  @property
  def pending_keys(self) -> list[str]:
    return [key for key, task in self._tasks.items() if not task.done()]

  async def wait_for(self, key: str) -> None:
    task = self._tasks.get(key)
    if task is None:
      return
    # Exceptions are already logged by the done callback.
    await asyncio.gather(task, return_exceptions=True)

  async def shutdown(self) -> None:
    tasks = [task for task in self._tasks.values() if not task.done()]
    if not tasks:
      return
    logger.info("Cancelling %s outstanding background tasks.", len(tasks))
    for task in tasks:
      task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    self._tasks.clear()
