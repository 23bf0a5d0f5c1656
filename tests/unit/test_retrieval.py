"""Unit tests for the reference retrieval chain."""

from __future__ import annotations

import pytest

from app.ai.retrieval import BUILTIN_REFERENCES, BuiltinTier, KeywordTier, ReferenceRetriever, SampleTier, extract_keywords
from app.storage.lyrics_repo import CorpusEntry

YEH_DOSTI = CorpusEntry(name="Yeh Dosti", text="Yeh dosti hum nahin todhenge\nTodhenge dum magar")
TUM_HI_HO = CorpusEntry(name="Tum Hi Ho", text="Hum tere bin ab reh nahin sakte\nTere bina kya wajood mera")
DIWALI = CorpusEntry(name="Diwali Love Song", text="Roshni ka festival, love in the air")


def test_extract_keywords_drops_short_and_stop_words() -> None:
  assert extract_keywords("A beautiful love story during a festival") == ["beautiful", "love", "story", "during", "festival"]
  assert extract_keywords("The day and the way") == []
  assert extract_keywords("Love LOVE love") == ["love"]


@pytest.mark.anyio
async def test_similarity_tier_returns_most_similar_first(fakes, embedder) -> None:
  repo = fakes.CorpusRepository([YEH_DOSTI, TUM_HI_HO, DIWALI], similarities={"Yeh Dosti": 0.2, "Tum Hi Ho": 0.9, "Diwali Love Song": 0.5})
  retriever = ReferenceRetriever.default(repo, embedder, threshold=0.01)

  result = await retriever.retrieve("heartbreak after love", 3)

  assert result.tier == "similarity"
  assert result.names == ["Tum Hi Ho", "Diwali Love Song", "Yeh Dosti"]
  assert embedder.calls == ["heartbreak after love"]


@pytest.mark.anyio
async def test_friendship_corpus_falls_through_to_sample_tier(fakes, embedder) -> None:
  """No embedding or keyword match for a love theme still yields corpus entries."""
  repo = fakes.CorpusRepository([YEH_DOSTI])
  retriever = ReferenceRetriever.default(repo, embedder, threshold=0.01)

  result = await retriever.retrieve("A beautiful love story during a festival", 3)

  assert result.tier == "sample"
  assert result.names == ["Yeh Dosti"]


@pytest.mark.anyio
async def test_embedding_failure_falls_back_to_keyword_match(fakes) -> None:
  repo = fakes.CorpusRepository([YEH_DOSTI, DIWALI], similarities={"Yeh Dosti": 0.9})
  retriever = ReferenceRetriever.default(repo, fakes.Embedder(error=RuntimeError("quota exceeded")), threshold=0.01)

  result = await retriever.retrieve("A festival of lights", 3)

  assert result.tier == "keyword"
  assert result.names == ["Diwali Love Song"]


@pytest.mark.anyio
async def test_empty_corpus_returns_builtin_references(corpus_repo, embedder) -> None:
  retriever = ReferenceRetriever.default(corpus_repo, embedder, threshold=0.01)

  result = await retriever.retrieve("anything at all", 2)

  assert result.tier == "builtin"
  assert result.names == [entry.name for entry in BUILTIN_REFERENCES[:2]]


@pytest.mark.anyio
async def test_retrieve_never_raises_when_every_tier_fails() -> None:
  class _BrokenTier:
    name = "broken"

    async def fetch(self, theme: str, limit: int) -> list[CorpusEntry]:
      raise ConnectionError("database unreachable")

  retriever = ReferenceRetriever([_BrokenTier(), _BrokenTier()])

  result = await retriever.retrieve("love", 3)

  assert result.tier == "builtin"
  assert len(result.entries) == 3


@pytest.mark.anyio
async def test_results_are_trimmed_to_limit(fakes) -> None:
  repo = fakes.CorpusRepository([YEH_DOSTI, TUM_HI_HO, DIWALI])
  retriever = ReferenceRetriever([SampleTier(repo), BuiltinTier()])

  result = await retriever.retrieve("anything", 2)

  assert result.names == ["Yeh Dosti", "Tum Hi Ho"]


@pytest.mark.anyio
async def test_keyword_tier_skips_search_without_keywords(fakes) -> None:
  repo = fakes.CorpusRepository([YEH_DOSTI])
  assert await KeywordTier(repo).fetch("the and for", 3) == []


def test_retriever_requires_tiers() -> None:
  with pytest.raises(ValueError):
    ReferenceRetriever([])


def test_default_tier_order(corpus_repo, embedder) -> None:
  retriever = ReferenceRetriever.default(corpus_repo, embedder, threshold=0.01)
  assert retriever.tier_names == ["similarity", "keyword", "sample", "builtin"]


@pytest.mark.anyio
async def test_keyword_in_entry_name_is_found(fakes, embedder) -> None:
  repo = fakes.CorpusRepository([YEH_DOSTI, TUM_HI_HO])
  retriever = ReferenceRetriever.default(repo, embedder, threshold=0.01)

  result = await retriever.retrieve("songs about dosti forever", 3)

  assert result.tier == "keyword"
  assert "Yeh Dosti" in result.names


def test_extract_keywords_ignores_punctuation() -> None:
  assert extract_keywords("Friendship, and dosti!") == ["friendship", "dosti"]


@pytest.mark.anyio
async def test_keyword_followed_by_punctuation_is_found(fakes, embedder) -> None:
  repo = fakes.CorpusRepository([TUM_HI_HO, YEH_DOSTI])
  retriever = ReferenceRetriever.default(repo, embedder, threshold=0.01)

  result = await retriever.retrieve("A song of friendship and dosti.", 1)

  assert result.tier == "keyword"
  assert result.names == ["Yeh Dosti"]
