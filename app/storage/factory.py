from app.config import Settings
from app.storage.lyrics_repo import LyricsCorpusRepository
from app.storage.postgres_lyrics_repo import PostgresLyricsCorpusRepository
from app.storage.postgres_songs_repo import PostgresSongsRepository
from app.storage.songs_repo import SongsRepository


def _get_songs_repo(settings: Settings) -> SongsRepository:
  """Return the active songs repository."""

  # Enforce Postgres-backed storage for songs.

  if not settings.pg_dsn:
    raise ValueError("AMOR_PG_DSN must be set to enable Postgres persistence.")

  return PostgresSongsRepository()


def _get_lyrics_repo(settings: Settings) -> LyricsCorpusRepository:
  """Return the active lyrics corpus repository."""

  if not settings.pg_dsn:
    raise ValueError("AMOR_PG_DSN must be set to enable Postgres persistence.")

  return PostgresLyricsCorpusRepository()
