"""Domain models for asynchronous song generation jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

SongStatus = Literal["pending", "generating", "completed", "failed"]
LogStatus = Literal["success", "error"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})
UNRESOLVED_STATUSES: frozenset[str] = frozenset({"pending", "generating"})

# Forward-only transitions. A terminal status only ever "transitions" to itself.
_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
  "pending": frozenset({"pending", "generating", "completed", "failed"}),
  "generating": frozenset({"generating", "completed", "failed"}),
  "completed": frozenset({"completed"}),
  "failed": frozenset({"failed"}),
}


class InvalidTransitionError(ValueError):
  """Raised when a job update would move status backwards or rewrite the external id."""


def can_transition(current: str, target: str) -> bool:
  """Return True when moving from `current` to `target` keeps status monotonic."""
  return target in _ALLOWED_TRANSITIONS.get(current, frozenset())


def is_terminal(status: str) -> bool:
  return status in TERMINAL_STATUSES


@dataclass
class SongRecord:
  """Represents one user-initiated song generation job."""

  song_id: str
  user_id: str
  title: str
  theme: str | None
  status: SongStatus
  created_at: datetime | None = None
  updated_at: datetime | None = None
  genre: str | None = None
  style_tags: list[str] = field(default_factory=list)
  lyrics: str | None = None
  reference_names: list[str] = field(default_factory=list)
  external_job_id: str | None = None
  clip_id: str | None = None
  audio_url: str | None = None
  video_url: str | None = None
  image_url: str | None = None
  duration: int | None = None
  error_message: str | None = None
  is_liked: bool = False
  play_count: int = 0
  completed_at: datetime | None = None


@dataclass
class GenerationLogRecord:
  """One timeline entry describing a pipeline step for a song."""

  song_id: str
  step: str
  status: LogStatus
  request_data: dict[str, Any] | None = None
  response_data: dict[str, Any] | None = None
  error_message: str | None = None
  created_at: datetime | None = None


def split_tags(raw: str | None) -> list[str]:
  """Split the persisted comma-joined tag string back into an ordered list."""
  if not raw:
    return []
  return [tag.strip() for tag in raw.split(",") if tag.strip()]


def join_tags(tags: list[str]) -> str:
  return ", ".join(tags)


def ensure_update_allowed(record: SongRecord, *, status: str | None = None, external_job_id: str | None = None) -> None:
  """Validate a pending update against the job invariants before it is written."""
  if status is not None and not can_transition(record.status, status):
    raise InvalidTransitionError(f"Song {record.song_id} cannot move from {record.status} to {status}.")
  if external_job_id is not None and record.external_job_id is not None and record.external_job_id != external_job_id:
    raise InvalidTransitionError(f"Song {record.song_id} already has external job {record.external_job_id}.")
