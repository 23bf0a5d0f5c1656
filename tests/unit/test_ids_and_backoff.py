"""Unit tests for placeholder ids and the polling backoff schedule."""

from __future__ import annotations

import re
from dataclasses import dataclass

from app.ai.backoff import BackoffPolicy
from app.utils.ids import generate_placeholder_id, generate_song_id, is_placeholder_id


def test_placeholder_id_format() -> None:
  task_id = generate_placeholder_id(now_ms=1700000000000)
  assert re.fullmatch(r"mock_1700000000000_[0-9a-z]{9}", task_id)
  assert is_placeholder_id(task_id)


def test_real_task_ids_are_not_placeholders() -> None:
  assert not is_placeholder_id("8f1c2d3e-task")
  assert not is_placeholder_id(None)
  assert not is_placeholder_id("")


def test_song_ids_are_unique() -> None:
  assert generate_song_id() != generate_song_id()


def test_backoff_grows_geometrically_until_cap() -> None:
  policy = BackoffPolicy(interval_seconds=30, multiplier=1.5, cap_seconds=120)
  assert [policy.delay_for(attempt) for attempt in range(5)] == [30, 45, 67.5, 101.25, 120]
  assert policy.delay_for(-3) == 30


def test_backoff_from_settings() -> None:
  @dataclass
  class _Settings:
    poll_interval_seconds: float = 5
    poll_backoff_multiplier: float = 2
    poll_backoff_cap_seconds: float = 15

  policy = BackoffPolicy.from_settings(_Settings())
  assert policy.delay_for(0) == 5
  assert policy.delay_for(1) == 10
  assert policy.delay_for(2) == 15
