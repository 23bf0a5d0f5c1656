"""Storage interfaces for song generation jobs."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from app.jobs.models import GenerationLogRecord, SongRecord, SongStatus


class SongsRepository(Protocol):
  """Repository contract for song persistence."""

  async def create_song(self, record: SongRecord) -> SongRecord:
    """Persist an initial song record and return it with database defaults applied."""

  async def get_song(self, song_id: str) -> SongRecord | None:
    """Fetch a song by identifier."""

  async def update_song(
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
    """Apply partial updates to a song.

    Raises InvalidTransitionError when the update would regress status or
    replace an already assigned external job id.
    """

  async def list_songs(self, user_id: str) -> list[SongRecord]:
    """Return a user's songs, newest first."""

  async def list_unresolved(self, user_id: str) -> list[SongRecord]:
    """Return a user's pending/generating songs that already carry an external job id."""

  async def delete_song(self, song_id: str) -> bool:
    """Delete a song and its logs. Returns False when the song does not exist."""

  async def append_log(self, record: GenerationLogRecord) -> None:
    """Append one generation log entry for a song."""

  async def list_logs(self, song_id: str, *, limit: int = 100) -> list[GenerationLogRecord]:
    """List generation log entries for a song, oldest first."""
