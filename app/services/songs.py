import logging
from typing import Any

from fastapi import HTTPException, status

from app.ai.orchestrator import DEFAULT_GENRE
from app.api.models import (
  DEFAULT_DURATION_SECONDS,
  BulkCheckResponse,
  GenerateSongRequest,
  GenerateSongResponse,
  GenerationLogResponse,
  SongCheckResponse,
  SongCheckResult,
  SongDeleteResponse,
  SongResponse,
  SongUpdateRequest,
)
from app.config import Settings
from app.jobs.models import GenerationLogRecord, SongRecord
from app.jobs.worker import SongJobProcessor
from app.services.pipeline import _get_song_processor
from app.services.tasks.factory import get_task_runner
from app.storage.factory import _get_songs_repo
from app.storage.songs_repo import SongsRepository
from app.utils.ids import generate_song_id

logger = logging.getLogger(__name__)

_SONG_NOT_FOUND_MSG = "Song not found."


def _song_response(record: SongRecord) -> SongResponse:
  """Convert a persisted song into an API payload."""
  tags = list(record.style_tags) or [tag for tag in (record.genre,) if tag] or [DEFAULT_GENRE]
  return SongResponse(
    id=record.song_id,
    title=record.title,
    theme=record.theme,
    genre=record.genre,
    lyrics=record.lyrics,
    status=record.status,
    task_id=record.external_job_id,
    clip_id=record.clip_id,
    audio_url=record.audio_url,
    video_url=record.video_url,
    image_url=record.image_url,
    reference_songs=list(record.reference_names),
    is_liked=record.is_liked,
    play_count=record.play_count,
    error_message=record.error_message,
    created_at=record.created_at,
    updated_at=record.updated_at,
    completed_at=record.completed_at,
    liked=record.is_liked,
    plays=record.play_count,
    duration=record.duration or DEFAULT_DURATION_SECONDS,
    tags=tags,
  )


def _log_response(record: GenerationLogRecord) -> GenerationLogResponse:
  return GenerationLogResponse(step=record.step, status=record.status, request_data=record.request_data, response_data=record.response_data, error_message=record.error_message, created_at=record.created_at)


async def _get_owned_song(repo: SongsRepository, song_id: str, user_id: str) -> SongRecord:
  record = await repo.get_song(song_id)
  if record is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_SONG_NOT_FOUND_MSG)
  if record.user_id != user_id:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")
  return record


async def create_song(request: GenerateSongRequest, settings: Settings, *, user_id: str) -> GenerateSongResponse:
  """Persist a pending song and start its background pipeline."""
  repo = _get_songs_repo(settings)
  genre = request.genre or (request.styles[0] if request.styles else DEFAULT_GENRE)
  record = SongRecord(song_id=generate_song_id(), user_id=user_id, title=request.title, theme=request.theme, status="pending", genre=genre, style_tags=list(request.styles), lyrics=request.lyrics)
  created = await repo.create_song(record)

  processor = _get_song_processor(settings)
  await processor.log_step(created.song_id, "generation_started", "success", request_data={"title": request.title, "theme": request.theme, "styles": list(request.styles), "genre": genre, "lyrics_supplied": request.lyrics is not None})

  trigger_song_processing(created.song_id, processor)
  return GenerateSongResponse(success=True, song_id=created.song_id, message="Song generation started")


def trigger_song_processing(song_id: str, processor: SongJobProcessor) -> None:
  """Schedule the pipeline for `song_id` on the background task runner."""
  runner = get_task_runner()

  async def _process() -> None:
    await processor.process_song(song_id)

  runner.submit(song_id, _process)


async def list_songs(settings: Settings, *, user_id: str) -> list[SongResponse]:
  repo = _get_songs_repo(settings)
  records = await repo.list_songs(user_id)
  return [_song_response(record) for record in records]


async def get_song(song_id: str, settings: Settings, *, user_id: str) -> SongResponse:
  repo = _get_songs_repo(settings)
  record = await _get_owned_song(repo, song_id, user_id)
  return _song_response(record)


async def update_song(song_id: str, payload: SongUpdateRequest, settings: Settings, *, user_id: str) -> SongResponse:
  """Apply a like toggle, a play count increment, or limited text edits."""
  repo = _get_songs_repo(settings)
  record = await _get_owned_song(repo, song_id, user_id)

  changes: dict[str, Any] = {}
  if payload.like_value is not None:
    changes["is_liked"] = payload.like_value
  if payload.increment_plays:
    changes["play_count"] = record.play_count + 1
  changes.update(payload.edits())

  if not changes:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid updates provided.")

  updated = await repo.update_song(song_id, **changes)
  if updated is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_SONG_NOT_FOUND_MSG)
  return _song_response(updated)


async def delete_song(song_id: str, settings: Settings, *, user_id: str) -> SongDeleteResponse:
  repo = _get_songs_repo(settings)
  await _get_owned_song(repo, song_id, user_id)
  deleted = await repo.delete_song(song_id)
  if not deleted:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_SONG_NOT_FOUND_MSG)
  return SongDeleteResponse(message="Song deleted successfully")


async def list_song_logs(song_id: str, settings: Settings, *, user_id: str) -> list[GenerationLogResponse]:
  repo = _get_songs_repo(settings)
  await _get_owned_song(repo, song_id, user_id)
  return [_log_response(entry) for entry in await repo.list_logs(song_id)]


async def check_song_status(song_id: str, settings: Settings, *, user_id: str) -> SongCheckResponse:
  """Re-query the music service once for a song and persist what it reports."""
  repo = _get_songs_repo(settings)
  record = await _get_owned_song(repo, song_id, user_id)

  if not record.external_job_id:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Song has no task ID - cannot retry.")
  if record.status == "completed":
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Song is already completed.")
  if record.status == "failed":
    return SongCheckResponse(success=False, status="failed", message="Song generation failed. Please try creating a new song.", error=record.error_message)

  processor = _get_song_processor(settings)
  updated, poll = await processor.check_song(record)
  logger.info("Manual status check for song %s finished as %s", song_id, updated.status)

  if updated.status == "completed":
    return SongCheckResponse(success=True, status="completed", message="Song generation completed successfully!", audio_url=updated.audio_url)
  if updated.status == "failed":
    return SongCheckResponse(success=False, status="failed", message="Song generation failed. Please try creating a new song.", error=updated.error_message)
  if poll is not None and poll.reason == "transport":
    return SongCheckResponse(success=False, status=updated.status, message="Unable to check song status due to temporary API issues. Please try again later.", error=updated.error_message)
  return SongCheckResponse(success=True, status=updated.status, message="Song is still being generated. Please try again in a few minutes.")


async def check_unresolved_songs(settings: Settings, *, user_id: str) -> BulkCheckResponse:
  """Run one status check for every unresolved song the user owns."""
  repo = _get_songs_repo(settings)
  songs = await repo.list_unresolved(user_id)
  if not songs:
    return BulkCheckResponse(message="No songs need status checking", updated=0, total=0)

  processor = _get_song_processor(settings)
  results: list[SongCheckResult] = []
  updated_count = 0
  for record in songs:
    try:
      updated, poll = await processor.check_song(record)
    except Exception as exc:  # noqa: BLE001
      logger.error("Status check failed for song %s: %s", record.song_id, exc)
      results.append(SongCheckResult(song_id=record.song_id, title=record.title, status="api_error", error=str(exc)))
      continue

    if updated.status == "completed":
      updated_count += 1
      results.append(SongCheckResult(song_id=record.song_id, title=record.title, status="completed", audio_url=updated.audio_url))
    elif updated.status == "failed":
      updated_count += 1
      results.append(SongCheckResult(song_id=record.song_id, title=record.title, status="failed", error=updated.error_message))
    elif poll is not None and poll.reason == "transport":
      results.append(SongCheckResult(song_id=record.song_id, title=record.title, status="api_error", error=poll.error_message))
    else:
      results.append(SongCheckResult(song_id=record.song_id, title=record.title, status="in_progress"))

  return BulkCheckResponse(message=f"Checked {len(songs)} songs, updated {updated_count}", updated=updated_count, total=len(songs), results=results)
