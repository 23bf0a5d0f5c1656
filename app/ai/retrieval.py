"""Reference retrieval over the lyrics corpus with an ordered fallback chain."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final, Protocol

from app.ai.providers.base import EmbeddingModel
from app.storage.lyrics_repo import CorpusEntry, LyricsCorpusRepository

logger = logging.getLogger(__name__)

STOP_WORDS: Final[frozenset[str]] = frozenset(
  {
    "the",
    "and",
    "for",
    "are",
    "but",
    "not",
    "you",
    "all",
    "can",
    "had",
    "her",
    "was",
    "one",
    "our",
    "out",
    "day",
    "get",
    "has",
    "him",
    "his",
    "how",
    "its",
    "may",
    "new",
    "now",
    "old",
    "see",
    "two",
    "who",
    "boy",
    "did",
    "she",
    "use",
    "way",
    "oil",
    "sit",
    "set",
  }
)

BUILTIN_REFERENCES: Final[tuple[CorpusEntry, ...]] = (
  CorpusEntry(name="Yeh Dosti", text="Yeh dosti hum nahin todhenge\nTodhenge dum magar\nTera saath na chhodenge"),
  CorpusEntry(name="Haan Jab Tak Hain Jaan", text="Haan jab tak hain jaan\nJaane jahaan main naachoongi\nPyar kabhi bhi marta nahin"),
  CorpusEntry(name="Koi Haseena", text="Koi haseena jab rooth jaati hain toh\nAur bhi haseen ho jaati hain"),
)


def extract_keywords(theme: str) -> list[str]:
  """Lowercase the theme, split it into word tokens and drop stop words and words of two characters or fewer."""
  keywords: list[str] = []
  for word in re.findall(r"\w+", theme.lower()):
    if len(word) <= 2 or word in STOP_WORDS:
      continue
    if word not in keywords:
      keywords.append(word)
  return keywords


class RetrievalTier(Protocol):
  """One strategy in the retrieval chain."""

  name: str

  async def fetch(self, theme: str, limit: int) -> list[CorpusEntry]:
    """Return candidate entries, or an empty list to fall through."""


class SimilarityTier:
  """Embed the theme and match it against stored corpus embeddings."""

  name = "similarity"

  def __init__(self, repo: LyricsCorpusRepository, embedder: EmbeddingModel, *, threshold: float) -> None:
    self._repo = repo
    self._embedder = embedder
    self._threshold = threshold

  async def fetch(self, theme: str, limit: int) -> list[CorpusEntry]:
    vector = await self._embedder.embed(theme)
    matches = await self._repo.match_by_embedding(vector, threshold=self._threshold, limit=limit)
    # Keep the contract explicit even if a backend returns rows unordered.
    return sorted(matches, key=lambda entry: entry.similarity or 0.0, reverse=True)


class KeywordTier:
  """Case-insensitive substring search over entry names and bodies."""

  name = "keyword"

  def __init__(self, repo: LyricsCorpusRepository) -> None:
    self._repo = repo

  async def fetch(self, theme: str, limit: int) -> list[CorpusEntry]:
    keywords = extract_keywords(theme)
    if not keywords:
      return []
    return await self._repo.search_keywords(keywords, limit=limit)


class SampleTier:
  """Any entries from a non-empty corpus."""

  name = "sample"

  def __init__(self, repo: LyricsCorpusRepository) -> None:
    self._repo = repo

  async def fetch(self, theme: str, limit: int) -> list[CorpusEntry]:
    return await self._repo.sample(limit=limit)


class BuiltinTier:
  """Fixed placeholder references used when the corpus is empty or unreachable."""

  name = "builtin"

  def __init__(self, entries: Sequence[CorpusEntry] = BUILTIN_REFERENCES) -> None:
    self._entries = tuple(entries)

  async def fetch(self, theme: str, limit: int) -> list[CorpusEntry]:
    return list(self._entries[:limit])


@dataclass(frozen=True)
class RetrievalResult:
  entries: list[CorpusEntry]
  tier: str

  @property
  def names(self) -> list[str]:
    return [entry.name for entry in self.entries]


class ReferenceRetriever:
  """
  Return up to N related corpus entries for a theme.

  Tiers are tried in order and the first non-empty answer wins. A tier that
  raises is logged and skipped, so `retrieve` never raises and never returns
  an empty list as long as the final tier is non-empty.
  """

  def __init__(self, tiers: Sequence[RetrievalTier]) -> None:
    if not tiers:
      raise ValueError("ReferenceRetriever requires at least one tier.")
    self._tiers = list(tiers)

  @classmethod
  def default(cls, repo: LyricsCorpusRepository, embedder: EmbeddingModel, *, threshold: float) -> ReferenceRetriever:
    return cls([SimilarityTier(repo, embedder, threshold=threshold), KeywordTier(repo), SampleTier(repo), BuiltinTier()])

  @property
  def tier_names(self) -> list[str]:
    return [tier.name for tier in self._tiers]

  async def retrieve(self, theme: str, limit: int) -> RetrievalResult:
    limit = max(1, limit)
    for tier in self._tiers:
      try:
        entries = await tier.fetch(theme, limit)
      except Exception as exc:  # noqa: BLE001
        logger.warning("Reference tier %s failed: %s", tier.name, exc)
        continue
      if entries:
        logger.info("Reference tier %s returned %s entries.", tier.name, len(entries))
        return RetrievalResult(entries=list(entries[:limit]), tier=tier.name)
      logger.debug("Reference tier %s returned no entries.", tier.name)

    # Every configured tier came back empty; the builtin list still guarantees a non-empty answer.
    logger.warning("All reference tiers were empty; using builtin references.")
    return RetrievalResult(entries=list(BUILTIN_REFERENCES[:limit]), tier=BuiltinTier.name)
