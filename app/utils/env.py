"""Minimal `.env` support so local runs and scripts pick up API keys without a wrapper."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

ENV_FILE_OVERRIDE = "AMOR_ENV_FILE"


def default_env_path() -> Path:
  """Return `$AMOR_ENV_FILE` when set, else `.env` at the project root."""
  override = os.getenv(ENV_FILE_OVERRIDE)
  if override:
    return Path(override).expanduser()
  return Path(__file__).resolve().parents[2] / ".env"


def _unquote(value: str) -> str:
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    return value[1:-1]
  # Unquoted values may carry a trailing ` # comment`.
  return value.split(" #", 1)[0].rstrip()


def iter_env_pairs(text: str) -> Iterator[tuple[str, str]]:
  """Yield `(key, value)` pairs from dotenv text, skipping blanks, comments and malformed lines."""
  for raw_line in text.splitlines():
    line = raw_line.strip()
    if not line or line.startswith("#"):
      continue
    line = line.removeprefix("export ").lstrip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
      continue
    yield key, _unquote(value.strip())


def load_env_file(path: Path, *, override: bool = False) -> int:
  """Load a dotenv file into `os.environ` and return how many keys were set."""
  if not path.is_file():
    return 0

  loaded = 0
  for key, value in iter_env_pairs(path.read_text(encoding="utf-8")):
    if not override and key in os.environ:
      continue
    os.environ[key] = value
    loaded += 1
  return loaded
