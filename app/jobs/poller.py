"""Completion polling for submitted music jobs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

from app.ai.backoff import BackoffPolicy
from app.services.suno_client import MusicService, SunoClip, TaskFailed, TaskNotReady, TaskStatusResult, TaskSucceeded, TaskTransportError
from app.utils.ids import PLACEHOLDER_PREFIX, is_placeholder_id

logger = logging.getLogger(__name__)

PLACEHOLDER_AUDIO_URL = "https://cdn1.suno.ai/mock-audio-url.mp3"
PLACEHOLDER_VIDEO_URL = "https://cdn1.suno.ai/mock-video-url.mp4"
PLACEHOLDER_IMAGE_URL = "https://cdn1.suno.ai/mock-image-url.jpg"
PLACEHOLDER_DURATION_SECONDS = 180

FAILED_MESSAGE = "Song generation failed on the music service"
TIMEOUT_MESSAGE = "Song generation timed out"
STILL_GENERATING_MESSAGE = "Song is still being generated. Please try again later."
CHECK_UNAVAILABLE_MESSAGE = "Unable to check song status due to API issues. Please try again later."

PollOutcome = Literal["completed", "failed", "generating"]
PollReason = Literal["succeeded", "failed", "timed_out", "transport", "not_ready"]

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PollResult:
  """Final or interim state of an external music job."""

  outcome: PollOutcome
  reason: PollReason
  attempts: int = 0
  clip_id: str | None = None
  audio_url: str | None = None
  video_url: str | None = None
  image_url: str | None = None
  duration: int | None = None
  error_message: str | None = None

  @property
  def is_terminal(self) -> bool:
    return self.outcome in ("completed", "failed")


def placeholder_clip(task_id: str) -> SunoClip:
  """Return the fixed clip a placeholder job resolves to."""
  return SunoClip(
    clip_id="clip_" + task_id[len(PLACEHOLDER_PREFIX) :],
    state="succeeded",
    audio_url=PLACEHOLDER_AUDIO_URL,
    video_url=PLACEHOLDER_VIDEO_URL,
    image_url=PLACEHOLDER_IMAGE_URL,
    duration=PLACEHOLDER_DURATION_SECONDS,
    title="Generated Song",
    tags="bollywood, hindi, romantic",
  )


def _round_duration(value: float | None) -> int | None:
  if value is None:
    return None
  return int(round(value))


def completed_from_clip(clip: SunoClip, *, attempts: int) -> PollResult:
  return PollResult(
    outcome="completed",
    reason="succeeded",
    attempts=attempts,
    clip_id=clip.clip_id,
    audio_url=clip.audio_url,
    video_url=clip.video_url,
    image_url=clip.image_url,
    duration=_round_duration(clip.duration),
  )


class CompletionPoller:
  """
  Poll the music service until a job succeeds, fails or the attempt budget runs out.

  Not-ready answers wait the base interval; transport errors wait the backoff
  delay for the current attempt. No sleep follows the final attempt.
  """

  def __init__(self, music: MusicService, *, policy: BackoffPolicy, max_attempts: int = 15, placeholder_delay_seconds: float = 2.0, sleep: Sleep | None = None) -> None:
    if max_attempts <= 0:
      raise ValueError("max_attempts must be positive.")
    self._music = music
    self._policy = policy
    self._max_attempts = max_attempts
    self._placeholder_delay = placeholder_delay_seconds
    self._sleep: Sleep = sleep or asyncio.sleep

  async def poll(self, task_id: str) -> PollResult:
    """Run the polling loop for `task_id` and return a terminal result."""
    if is_placeholder_id(task_id):
      logger.info("Placeholder task %s detected; simulating completion.", task_id)
      await self._sleep(self._placeholder_delay)
      return completed_from_clip(placeholder_clip(task_id), attempts=0)

    last_error: str | None = None
    for attempt in range(self._max_attempts):
      result = await self._music.fetch_task(task_id)
      attempts = attempt + 1
      is_last = attempts >= self._max_attempts

      match result:
        case TaskSucceeded(clip=clip):
          logger.info("Task %s succeeded after %s attempts.", task_id, attempts)
          return completed_from_clip(clip, attempts=attempts)
        case TaskFailed():
          logger.info("Task %s failed on the music service.", task_id)
          return PollResult(outcome="failed", reason="failed", attempts=attempts, error_message=FAILED_MESSAGE)
        case TaskTransportError(message=message):
          last_error = message
          logger.warning("Task %s polling attempt %s/%s failed: %s", task_id, attempts, self._max_attempts, message)
          if not is_last:
            await self._sleep(self._policy.delay_for(attempt))
        case TaskNotReady():
          logger.debug("Task %s not ready (attempt %s/%s).", task_id, attempts, self._max_attempts)
          if not is_last:
            await self._sleep(self._policy.interval_seconds)

    if last_error is not None:
      logger.error("Task %s polling failed after %s attempts: %s", task_id, self._max_attempts, last_error)
      return PollResult(outcome="failed", reason="transport", attempts=self._max_attempts, error_message=f"Polling failed: {last_error}")

    logger.warning("Task %s timed out after %s attempts.", task_id, self._max_attempts)
    return PollResult(outcome="failed", reason="timed_out", attempts=self._max_attempts, error_message=TIMEOUT_MESSAGE)

  async def check_once(self, task_id: str) -> PollResult:
    """Classify a single out-of-band status query. Not-ready and transport errors stay `generating`."""
    if is_placeholder_id(task_id):
      return completed_from_clip(placeholder_clip(task_id), attempts=0)

    result: TaskStatusResult = await self._music.fetch_task(task_id)
    match result:
      case TaskSucceeded(clip=clip):
        return completed_from_clip(clip, attempts=1)
      case TaskFailed():
        return PollResult(outcome="failed", reason="failed", attempts=1, error_message=FAILED_MESSAGE)
      case TaskTransportError(message=message):
        logger.warning("Out-of-band status check for %s failed: %s", task_id, message)
        return PollResult(outcome="generating", reason="transport", attempts=1, error_message=CHECK_UNAVAILABLE_MESSAGE)
      case _:
        return PollResult(outcome="generating", reason="not_ready", attempts=1, error_message=STILL_GENERATING_MESSAGE)
