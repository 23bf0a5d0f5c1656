"Orchestration for the song generation pipeline: retrieval, drafting and submission."

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from app.ai.agents.lyricist import FALLBACK_LYRICS, LyricistAgent
from app.ai.retrieval import ReferenceRetriever
from app.services.suno_client import MusicService, MusicServiceError
from app.utils.ids import generate_placeholder_id

logger = logging.getLogger(__name__)

DEFAULT_GENRE = "bollywood"


def resolve_submission_tags(style_tags: Sequence[str], genre: str | None) -> str:
  """Join style tags for the music service, or fall back to the genre set."""
  if style_tags:
    return ", ".join(style_tags)
  return f"{genre or DEFAULT_GENRE}, hindi, bollywood"


@dataclass(frozen=True)
class OrchestrationResult:
  """Output from the drafting and submission stages."""

  lyrics: str
  title: str
  tags: str
  task_id: str
  reference_names: list[str] = field(default_factory=list)
  reference_tier: str | None = None
  used_fallback_lyrics: bool = False
  placeholder: bool = False
  submit_error: str | None = None


class OrchestrationError(RuntimeError):
  """Raised when submission fails and no placeholder may be substituted."""

  def __init__(self, message: str, *, lyrics: str, reference_names: list[str]) -> None:
    super().__init__(message)
    # Keep what was produced so the job row can still show the draft.
    self.lyrics = lyrics
    self.reference_names = reference_names


class SongOrchestrator:
  """Runs retrieval, drafting and submission for one song request."""

  def __init__(self, *, retriever: ReferenceRetriever, lyricist: LyricistAgent, music: MusicService, reference_count: int = 3, placeholder_on_submit_failure: bool = True) -> None:
    self._retriever = retriever
    self._lyricist = lyricist
    self._music = music
    self._reference_count = reference_count
    self._placeholder_on_submit_failure = placeholder_on_submit_failure

  async def draft_lyrics(self, theme: str, style_tags: Sequence[str]) -> tuple[str, list[str], str | None, bool]:
    """Return (lyrics, reference names, tier, used_fallback). Never raises."""
    reference_names: list[str] = []
    tier: str | None = None
    try:
      retrieval = await self._retriever.retrieve(theme, self._reference_count)
      reference_names = retrieval.names
      tier = retrieval.tier
      lyrics = await self._lyricist.draft(theme, style_tags, [entry.text for entry in retrieval.entries])
      return lyrics, reference_names, tier, False
    except Exception as exc:  # noqa: BLE001
      logger.error("Lyric drafting failed, using fallback lyrics: %s", exc)
      return FALLBACK_LYRICS, reference_names, tier, True

  async def run(self, *, title: str, theme: str, style_tags: Sequence[str], genre: str | None = None, lyrics: str | None = None) -> OrchestrationResult:
    """Draft lyrics when none are supplied, then submit them to the music service."""
    reference_names: list[str] = []
    tier: str | None = None
    used_fallback = False
    if not lyrics:
      lyrics, reference_names, tier, used_fallback = await self.draft_lyrics(theme, style_tags)

    tags = resolve_submission_tags(style_tags, genre)
    try:
      task_id = await self._music.create_music(lyrics=lyrics, title=title, tags=tags)
    except MusicServiceError as exc:
      if not self._placeholder_on_submit_failure:
        raise OrchestrationError(f"Music submission failed: {exc}", lyrics=lyrics, reference_names=reference_names) from exc
      placeholder_id = generate_placeholder_id()
      logger.warning("Music submission failed, using placeholder task %s: %s", placeholder_id, exc)
      return OrchestrationResult(
        lyrics=lyrics, title=title, tags=tags, task_id=placeholder_id, reference_names=reference_names, reference_tier=tier, used_fallback_lyrics=used_fallback, placeholder=True, submit_error=str(exc)
      )

    return OrchestrationResult(lyrics=lyrics, title=title, tags=tags, task_id=task_id, reference_names=reference_names, reference_tier=tier, used_fallback_lyrics=used_fallback)
