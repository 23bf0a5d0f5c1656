"""Storage interfaces for the reference lyrics corpus."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CorpusEntry:
  """One historical song returned from the corpus, with an optional similarity score."""

  name: str
  text: str
  similarity: float | None = None


class LyricsCorpusRepository(Protocol):
  """Repository contract for the shared, read-mostly lyrics corpus."""

  async def match_by_embedding(self, vector: list[float], *, threshold: float, limit: int) -> list[CorpusEntry]:
    """Return entries whose cosine similarity exceeds `threshold`, most similar first."""

  async def search_keywords(self, keywords: list[str], *, limit: int) -> list[CorpusEntry]:
    """Return entries whose name or text contains any keyword, case-insensitively."""

  async def sample(self, *, limit: int) -> list[CorpusEntry]:
    """Return any `limit` entries from the corpus."""

  async def insert_entry(self, name: str, text: str, embedding: list[float] | None) -> None:
    """Insert one cleaned corpus entry."""

  async def clear(self) -> int:
    """Delete every corpus entry and return the number removed."""
