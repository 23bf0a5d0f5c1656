"""Background processor for song generation jobs."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from app.ai.orchestrator import OrchestrationError, SongOrchestrator
from app.jobs.models import GenerationLogRecord, InvalidTransitionError, LogStatus, SongRecord, is_terminal
from app.jobs.poller import CompletionPoller, PollResult
from app.storage.songs_repo import SongsRepository

_TERMINAL_LOG_STEPS = {"succeeded": "generation_completed", "failed": "generation_failed", "timed_out": "generation_timeout", "transport": "polling_failed"}


class SongJobProcessor:
  """Coordinates the lifecycle of one song: orchestration, polling and persistence."""

  def __init__(self, *, songs_repo: SongsRepository, orchestrator: SongOrchestrator, poller: CompletionPoller) -> None:
    self._songs_repo = songs_repo
    self._orchestrator = orchestrator
    self._poller = poller
    self._logger = logging.getLogger(__name__)

  async def log_step(self, song_id: str, step: str, status: LogStatus, *, request_data: dict[str, Any] | None = None, response_data: dict[str, Any] | None = None, error_message: str | None = None) -> None:
    """Append a generation log entry. Failures are logged and swallowed."""
    try:
      await self._songs_repo.append_log(GenerationLogRecord(song_id=song_id, step=step, status=status, request_data=request_data, response_data=response_data, error_message=error_message))
    except Exception as exc:  # noqa: BLE001
      self._logger.error("Failed to write generation log %s for song %s: %s", step, song_id, exc)

  async def process_song(self, song_id: str) -> SongRecord | None:
    """Run the full pipeline for a pending song and return its final record."""
    record = await self._songs_repo.get_song(song_id)
    if record is None:
      self._logger.warning("Song %s disappeared before processing.", song_id)
      return None
    if record.status != "pending":
      return record

    try:
      return await self._run(record)
    except asyncio.CancelledError:
      await asyncio.shield(self._handle_cancelled(song_id))
      raise
    except Exception as exc:  # noqa: BLE001
      self._logger.error("Song pipeline crashed for %s", song_id, exc_info=True)
      await self._mark_failed(song_id, str(exc) or exc.__class__.__name__, step="generation_failed")
      return await self._songs_repo.get_song(song_id)

  async def _run(self, record: SongRecord) -> SongRecord | None:
    song_id = record.song_id
    await self._songs_repo.update_song(song_id, status="generating")

    try:
      result = await self._orchestrator.run(title=record.title, theme=record.theme or "", style_tags=record.style_tags, genre=record.genre, lyrics=record.lyrics)
    except OrchestrationError as exc:
      await self._songs_repo.update_song(song_id, lyrics=exc.lyrics, reference_names=exc.reference_names)
      await self._mark_failed(song_id, str(exc), step="generation_failed")
      return await self._songs_repo.get_song(song_id)

    await self._songs_repo.update_song(song_id, external_job_id=result.task_id, lyrics=result.lyrics, reference_names=result.reference_names)
    await self.log_step(
      song_id,
      "music_generation_started",
      "success",
      request_data={"title": result.title, "theme": record.theme, "tags": result.tags, "reference_tier": result.reference_tier},
      response_data={"task_id": result.task_id, "placeholder": result.placeholder, "fallback_lyrics": result.used_fallback_lyrics, "submit_error": result.submit_error},
    )

    poll = await self._poller.poll(result.task_id)
    return await self.apply_poll_result(song_id, poll, step_override=None)

  async def apply_poll_result(self, song_id: str, poll: PollResult, *, step_override: str | None) -> SongRecord | None:
    """Persist a poll outcome. Non-terminal outcomes only refresh the diagnostic message."""
    try:
      return await self._persist_poll_result(song_id, poll, step_override=step_override)
    except InvalidTransitionError as exc:
      # Another writer (a manual check) already finalized the song.
      self._logger.info("Ignoring poll result for %s: %s", song_id, exc)
      return await self._songs_repo.get_song(song_id)

  async def _persist_poll_result(self, song_id: str, poll: PollResult, *, step_override: str | None) -> SongRecord | None:
    step = step_override or _TERMINAL_LOG_STEPS.get(poll.reason)
    if poll.outcome == "completed":
      updated = await self._songs_repo.update_song(
        song_id,
        status="completed",
        clip_id=poll.clip_id,
        audio_url=poll.audio_url,
        video_url=poll.video_url,
        image_url=poll.image_url,
        duration=poll.duration,
        completed_at=datetime.now(UTC),
        clear_error=True,
      )
      if step:
        await self.log_step(song_id, step, "success", response_data={"clip_id": poll.clip_id, "audio_url": poll.audio_url, "duration": poll.duration, "attempts": poll.attempts})
      return updated

    if poll.outcome == "failed":
      updated = await self._songs_repo.update_song(song_id, status="failed", error_message=poll.error_message)
      if step:
        await self.log_step(song_id, step, "error", response_data={"reason": poll.reason, "attempts": poll.attempts}, error_message=poll.error_message)
      return updated

    updated = await self._songs_repo.update_song(song_id, status="generating", error_message=poll.error_message)
    if step:
      await self.log_step(song_id, step, "error", response_data={"reason": poll.reason}, error_message=poll.error_message)
    return updated

  async def check_song(self, record: SongRecord) -> tuple[SongRecord, PollResult | None]:
    """Query the music service once for a song that already has an external id."""
    if record.external_job_id is None or is_terminal(record.status):
      return record, None

    poll = await self._poller.check_once(record.external_job_id)
    if poll.outcome == "completed":
      step = "manual_retry_success"
    elif poll.reason == "transport":
      step = "manual_retry_failed"
    else:
      step = None
    updated = await self.apply_poll_result(record.song_id, poll, step_override=step)
    return updated or record, poll

  async def _handle_cancelled(self, song_id: str) -> None:
    current = await self._songs_repo.get_song(song_id)
    if current is None or is_terminal(current.status):
      return
    if current.external_job_id:
      # Status checks can still resolve a submitted song.
      self._logger.warning("Song pipeline for %s cancelled while polling %s.", song_id, current.external_job_id)
      return
    self._logger.warning("Song pipeline for %s cancelled before submission.", song_id)
    await self._mark_failed(song_id, "Generation interrupted", step="generation_failed")

  async def _mark_failed(self, song_id: str, message: str, *, step: str) -> None:
    try:
      await self._songs_repo.update_song(song_id, status="failed", error_message=message)
    except InvalidTransitionError:
      self._logger.warning("Song %s already finalized; not marking failed.", song_id)
    except Exception as exc:  # noqa: BLE001
      self._logger.error("Failed to mark song %s as failed: %s", song_id, exc)
    await self.log_step(song_id, step, "error", error_message=message)
