"""Unit tests for completion polling."""

from __future__ import annotations

import pytest

from app.ai.backoff import BackoffPolicy
from app.jobs.poller import PLACEHOLDER_AUDIO_URL, PLACEHOLDER_DURATION_SECONDS, TIMEOUT_MESSAGE, CompletionPoller
from app.services.suno_client import SunoClip, TaskFailed, TaskNotReady, TaskSucceeded, TaskTransportError

POLICY = BackoffPolicy(interval_seconds=30, multiplier=1.5, cap_seconds=120)
CLIP = SunoClip(clip_id="clip-9", state="succeeded", audio_url="https://cdn.test/song.mp3", video_url="https://cdn.test/song.mp4", image_url="https://cdn.test/song.jpg", duration=201.4)


def _poller(music, sleep, *, max_attempts: int = 15) -> CompletionPoller:  # type: ignore[no-untyped-def]
  return CompletionPoller(music, policy=POLICY, max_attempts=max_attempts, placeholder_delay_seconds=2, sleep=sleep)


@pytest.mark.anyio
async def test_not_ready_three_times_then_succeeded(fakes, recording_sleep) -> None:
  music = fakes.Music(statuses=[TaskNotReady(), TaskNotReady(), TaskNotReady(), TaskSucceeded(clip=CLIP)])

  result = await _poller(music, recording_sleep).poll("task-1")

  assert result.outcome == "completed"
  assert result.attempts == 4
  assert result.audio_url == "https://cdn.test/song.mp3"
  assert result.duration == 201
  assert recording_sleep.delays == [30, 30, 30]


@pytest.mark.anyio
async def test_transport_errors_until_budget_fail_the_job(fakes, recording_sleep) -> None:
  music = fakes.Music(statuses=[TaskTransportError(message="connection reset")])

  result = await _poller(music, recording_sleep, max_attempts=4).poll("task-1")

  assert result.outcome == "failed"
  assert result.reason == "transport"
  assert "Polling failed" in (result.error_message or "")
  assert len(music.fetches) == 4
  # Backoff between attempts, and no sleep after the last one.
  assert recording_sleep.delays == [30, 45, 67.5]


@pytest.mark.anyio
async def test_not_ready_until_budget_times_out(fakes, recording_sleep) -> None:
  music = fakes.Music(statuses=[TaskNotReady()])

  result = await _poller(music, recording_sleep, max_attempts=3).poll("task-1")

  assert result.outcome == "failed"
  assert result.reason == "timed_out"
  assert result.error_message == TIMEOUT_MESSAGE
  assert recording_sleep.delays == [30, 30]


@pytest.mark.anyio
async def test_failed_clip_stops_polling(fakes, recording_sleep) -> None:
  music = fakes.Music(statuses=[TaskNotReady(), TaskFailed(), TaskSucceeded(clip=CLIP)])

  result = await _poller(music, recording_sleep).poll("task-1")

  assert result.outcome == "failed"
  assert result.reason == "failed"
  assert len(music.fetches) == 2


@pytest.mark.anyio
async def test_transient_error_then_success(fakes, recording_sleep) -> None:
  music = fakes.Music(statuses=[TaskTransportError(message="503"), TaskSucceeded(clip=CLIP)])

  result = await _poller(music, recording_sleep).poll("task-1")

  assert result.outcome == "completed"
  assert recording_sleep.delays == [30]


@pytest.mark.anyio
async def test_placeholder_task_resolves_without_querying(fakes, recording_sleep) -> None:
  music = fakes.Music()

  result = await _poller(music, recording_sleep).poll("mock_1700000000000_abcdefghi")

  assert result.outcome == "completed"
  assert result.clip_id == "clip_1700000000000_abcdefghi"
  assert result.audio_url == PLACEHOLDER_AUDIO_URL
  assert result.duration == PLACEHOLDER_DURATION_SECONDS
  assert music.fetches == []
  assert recording_sleep.delays == [2]


@pytest.mark.anyio
async def test_check_once_keeps_not_ready_and_transport_errors_generating(fakes, recording_sleep) -> None:
  poller = _poller(fakes.Music(statuses=[TaskNotReady(), TaskTransportError(message="boom")]), recording_sleep)

  not_ready = await poller.check_once("task-1")
  transport = await poller.check_once("task-1")

  assert (not_ready.outcome, not_ready.reason) == ("generating", "not_ready")
  assert (transport.outcome, transport.reason) == ("generating", "transport")
  assert recording_sleep.delays == []


@pytest.mark.anyio
async def test_check_once_resolves_placeholder_immediately(fakes, recording_sleep) -> None:
  result = await _poller(fakes.Music(), recording_sleep).check_once("mock_1_abc")
  assert result.outcome == "completed"
  assert recording_sleep.delays == []


def test_max_attempts_must_be_positive(fakes) -> None:
  with pytest.raises(ValueError):
    CompletionPoller(fakes.Music(), policy=POLICY, max_attempts=0)
