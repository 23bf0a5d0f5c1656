from __future__ import annotations

from functools import lru_cache

from app.services.tasks.interface import TaskRunner
from app.services.tasks.local import InProcessTaskRunner


@lru_cache(maxsize=1)
def get_task_runner() -> TaskRunner:
  """Return the process-wide background task runner."""
  return InProcessTaskRunner()
