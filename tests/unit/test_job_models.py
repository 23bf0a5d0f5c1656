"""Unit tests for song job status rules."""

from __future__ import annotations

import pytest

from app.jobs.models import InvalidTransitionError, SongRecord, can_transition, ensure_update_allowed, is_terminal, join_tags, split_tags


def _record(**overrides: object) -> SongRecord:
  values: dict[str, object] = {"song_id": "song-1", "user_id": "user-1", "title": "Diwali", "theme": "festival", "status": "pending"}
  values.update(overrides)
  return SongRecord(**values)  # type: ignore[arg-type]


@pytest.mark.parametrize(("current", "target"), [("pending", "generating"), ("pending", "failed"), ("generating", "completed"), ("generating", "failed"), ("generating", "generating"), ("completed", "completed")])
def test_forward_transitions_are_allowed(current: str, target: str) -> None:
  assert can_transition(current, target)


@pytest.mark.parametrize(("current", "target"), [("generating", "pending"), ("completed", "generating"), ("completed", "failed"), ("failed", "completed"), ("failed", "pending")])
def test_backward_and_cross_terminal_transitions_are_refused(current: str, target: str) -> None:
  assert not can_transition(current, target)


def test_terminal_statuses() -> None:
  assert is_terminal("completed")
  assert is_terminal("failed")
  assert not is_terminal("generating")


def test_ensure_update_allowed_refuses_status_regression() -> None:
  with pytest.raises(InvalidTransitionError):
    ensure_update_allowed(_record(status="completed"), status="generating")


def test_external_job_id_is_write_once() -> None:
  record = _record(status="generating", external_job_id="task-1")
  # Re-writing the same id is harmless.
  ensure_update_allowed(record, external_job_id="task-1")
  with pytest.raises(InvalidTransitionError):
    ensure_update_allowed(record, external_job_id="task-2")


def test_tags_round_trip_through_storage_format() -> None:
  assert split_tags(" romantic, acoustic ,,  ") == ["romantic", "acoustic"]
  assert split_tags(None) == []
  assert join_tags(["romantic", "acoustic"]) == "romantic, acoustic"
