"""Postgres-backed repository for song generation jobs using SQLAlchemy."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import delete, select

from app.core.database import get_session_factory
from app.jobs.models import GenerationLogRecord, SongRecord, SongStatus, UNRESOLVED_STATUSES, ensure_update_allowed, join_tags, split_tags
from app.schema.songs import GenerationLog, Song
from app.storage.songs_repo import SongsRepository


def _parse_song_id(song_id: str) -> uuid.UUID | None:
  try:
    return uuid.UUID(str(song_id))
  except ValueError:
    return None


class PostgresSongsRepository(SongsRepository):
  """Persist songs and their generation logs to Postgres using SQLAlchemy."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def create_song(self, record: SongRecord) -> SongRecord:
    async with self._session_factory() as session:
      row = Song(
        id=_parse_song_id(record.song_id) or uuid.uuid4(),
        user_id=record.user_id,
        title=record.title,
        theme=record.theme,
        genre=record.genre,
        tags=join_tags(record.style_tags) if record.style_tags else None,
        lyrics=record.lyrics,
        reference_songs=list(record.reference_names),
        task_id=record.external_job_id,
        status=record.status,
        error_message=record.error_message,
      )
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._model_to_record(row)

  async def get_song(self, song_id: str) -> SongRecord | None:
    parsed = _parse_song_id(song_id)
    if parsed is None:
      return None
    async with self._session_factory() as session:
      row = await session.get(Song, parsed)
      if row is None:
        return None
      return self._model_to_record(row)

  async def update_song(  # pylint: disable=too-many-arguments
    self,
    song_id: str,
    *,
    status: SongStatus | None = None,
    title: str | None = None,
    theme: str | None = None,
    genre: str | None = None,
    style_tags: list[str] | None = None,
    lyrics: str | None = None,
    reference_names: list[str] | None = None,
    external_job_id: str | None = None,
    clip_id: str | None = None,
    audio_url: str | None = None,
    video_url: str | None = None,
    image_url: str | None = None,
    duration: int | None = None,
    error_message: str | None = None,
    clear_error: bool = False,
    is_liked: bool | None = None,
    play_count: int | None = None,
    completed_at: datetime | None = None,
  ) -> SongRecord | None:
    parsed = _parse_song_id(song_id)
    if parsed is None:
      return None
    async with self._session_factory() as session:
      # Lock the row so a manual status check and the background poller cannot interleave writes.
      stmt = select(Song).where(Song.id == parsed).with_for_update()
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is None:
        return None
      ensure_update_allowed(self._model_to_record(row), status=status, external_job_id=external_job_id)
      if status is not None:
        row.status = status
      if title is not None:
        row.title = title
      if theme is not None:
        row.theme = theme
      if genre is not None:
        row.genre = genre
      if style_tags is not None:
        row.tags = join_tags(style_tags)
      if lyrics is not None:
        row.lyrics = lyrics
      if reference_names is not None:
        row.reference_songs = list(reference_names)
      if external_job_id is not None:
        row.task_id = external_job_id
      if clip_id is not None:
        row.clip_id = clip_id
      if audio_url is not None:
        row.audio_url = audio_url
      if video_url is not None:
        row.video_url = video_url
      if image_url is not None:
        row.image_url = image_url
      if duration is not None:
        row.duration = duration
      if clear_error:
        row.error_message = None
      elif error_message is not None:
        row.error_message = error_message
      if is_liked is not None:
        row.is_liked = is_liked
      if play_count is not None:
        row.play_count = play_count
      if completed_at is not None:
        row.completed_at = completed_at
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._model_to_record(row)

  async def list_songs(self, user_id: str) -> list[SongRecord]:
    async with self._session_factory() as session:
      stmt = select(Song).where(Song.user_id == user_id).order_by(Song.created_at.desc())
      rows = (await session.execute(stmt)).scalars().all()
      return [self._model_to_record(row) for row in rows]

  async def list_unresolved(self, user_id: str) -> list[SongRecord]:
    async with self._session_factory() as session:
      stmt = select(Song).where(Song.user_id == user_id, Song.status.in_(sorted(UNRESOLVED_STATUSES)), Song.task_id.is_not(None)).order_by(Song.created_at.desc())
      rows = (await session.execute(stmt)).scalars().all()
      return [self._model_to_record(row) for row in rows]

  async def delete_song(self, song_id: str) -> bool:
    parsed = _parse_song_id(song_id)
    if parsed is None:
      return False
    async with self._session_factory() as session:
      result = await session.execute(delete(Song).where(Song.id == parsed))
      await session.commit()
      return (result.rowcount or 0) > 0

  async def append_log(self, record: GenerationLogRecord) -> None:
    parsed = _parse_song_id(record.song_id)
    if parsed is None:
      return
    async with self._session_factory() as session:
      session.add(GenerationLog(song_id=parsed, step=record.step, status=record.status, request_data=record.request_data, response_data=record.response_data, error_message=record.error_message))
      await session.commit()

  async def list_logs(self, song_id: str, *, limit: int = 100) -> list[GenerationLogRecord]:
    parsed = _parse_song_id(song_id)
    if parsed is None:
      return []
    async with self._session_factory() as session:
      stmt = select(GenerationLog).where(GenerationLog.song_id == parsed).order_by(GenerationLog.created_at.asc(), GenerationLog.id.asc()).limit(limit)
      rows = (await session.execute(stmt)).scalars().all()
      return [
        GenerationLogRecord(song_id=str(row.song_id), step=row.step, status=row.status, request_data=row.request_data, response_data=row.response_data, error_message=row.error_message, created_at=row.created_at)  # type: ignore[arg-type]
        for row in rows
      ]

  @staticmethod
  def _model_to_record(row: Song) -> SongRecord:
    return SongRecord(
      song_id=str(row.id),
      user_id=row.user_id,
      title=row.title,
      theme=row.theme,
      status=row.status,  # type: ignore[arg-type]
      created_at=row.created_at,
      updated_at=row.updated_at,
      genre=row.genre,
      style_tags=split_tags(row.tags),
      lyrics=row.lyrics,
      reference_names=list(row.reference_songs or []),
      external_job_id=row.task_id,
      clip_id=row.clip_id,
      audio_url=row.audio_url,
      video_url=row.video_url,
      image_url=row.image_url,
      duration=row.duration,
      error_message=row.error_message,
      is_liked=bool(row.is_liked),
      play_count=int(row.play_count or 0),
      completed_at=row.completed_at,
    )
