"""Identifier utilities."""

from __future__ import annotations

import secrets
import string
import time
import uuid

PLACEHOLDER_PREFIX = "mock_"
_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def generate_song_id() -> str:
  """Return a new song identifier."""
  return str(uuid.uuid4())


def generate_placeholder_id(*, now_ms: int | None = None) -> str:
  """Return a locally synthesized stand-in for a music-service task id.

  Format: `mock_<epoch-millis>_<9 base36 chars>`.
  """
  millis = now_ms if now_ms is not None else int(time.time() * 1000)
  suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(9))
  return f"{PLACEHOLDER_PREFIX}{millis}_{suffix}"


def is_placeholder_id(task_id: str | None) -> bool:
  return bool(task_id) and str(task_id).startswith(PLACEHOLDER_PREFIX)
