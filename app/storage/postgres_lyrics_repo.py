"""Postgres-backed lyrics corpus using pgvector for similarity search."""

from __future__ import annotations

from sqlalchemy import delete, or_, select

from app.core.database import get_session_factory
from app.schema.lyrics import LyricsIndexEntry
from app.storage.lyrics_repo import CorpusEntry, LyricsCorpusRepository


def _escape_like(value: str) -> str:
  return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresLyricsCorpusRepository(LyricsCorpusRepository):
  """Query and load the `lyrics_index` table."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def match_by_embedding(self, vector: list[float], *, threshold: float, limit: int) -> list[CorpusEntry]:
    # pgvector returns cosine distance; similarity is its complement.
    distance = LyricsIndexEntry.embedding.cosine_distance(vector)
    similarity = (1 - distance).label("similarity")
    async with self._session_factory() as session:
      stmt = (
        select(LyricsIndexEntry.song_name, LyricsIndexEntry.lyrics_text, similarity)
        .where(LyricsIndexEntry.embedding.is_not(None))
        .where((1 - distance) > threshold)
        .order_by(distance.asc())
        .limit(limit)
      )
      rows = (await session.execute(stmt)).all()
      return [CorpusEntry(name=row.song_name, text=row.lyrics_text, similarity=float(row.similarity)) for row in rows]

  async def search_keywords(self, keywords: list[str], *, limit: int) -> list[CorpusEntry]:
    if not keywords:
      return []
    clauses = []
    for keyword in keywords:
      pattern = f"%{_escape_like(keyword)}%"
      clauses.append(LyricsIndexEntry.song_name.ilike(pattern, escape="\\"))
      clauses.append(LyricsIndexEntry.lyrics_text.ilike(pattern, escape="\\"))
    async with self._session_factory() as session:
      stmt = select(LyricsIndexEntry.song_name, LyricsIndexEntry.lyrics_text).where(or_(*clauses)).limit(limit)
      rows = (await session.execute(stmt)).all()
      return [CorpusEntry(name=row.song_name, text=row.lyrics_text) for row in rows]

  async def sample(self, *, limit: int) -> list[CorpusEntry]:
    async with self._session_factory() as session:
      stmt = select(LyricsIndexEntry.song_name, LyricsIndexEntry.lyrics_text).limit(limit)
      rows = (await session.execute(stmt)).all()
      return [CorpusEntry(name=row.song_name, text=row.lyrics_text) for row in rows]

  async def insert_entry(self, name: str, text: str, embedding: list[float] | None) -> None:
    async with self._session_factory() as session:
      session.add(LyricsIndexEntry(song_name=name, lyrics_text=text, embedding=embedding))
      await session.commit()

  async def clear(self) -> int:
    async with self._session_factory() as session:
      result = await session.execute(delete(LyricsIndexEntry))
      await session.commit()
      return int(result.rowcount or 0)
