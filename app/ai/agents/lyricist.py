from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Final

from app.ai.agents.prompts import render_lyrics_prompt
from app.ai.providers.base import AIModel

logger = logging.getLogger(__name__)

FALLBACK_LYRICS: Final[str] = """[Verse]
प्रेम की ये कहानी सुनाते हैं
दिल की गहराइयों से आवाज़ लाते हैं

[Chorus]
गाते हैं हम ये गाना
प्रेम का ये दीवाना
खुशी से भरा है मन
सुनो इसे तुम भी एक बार"""

SECTION_MARKER = re.compile(r"\[(Verse|Chorus|Bridge|Intro|Outro)", re.IGNORECASE)

_MARKDOWN_SPANS: Final[tuple[re.Pattern[str], ...]] = (re.compile(r"\*\*[^*]*\*\*"), re.compile(r"\*[^*]*\*"))

TRAILING_PHRASES: Final[tuple[str, ...]] = (
  "I hope these lyrics",
  "These lyrics capture",
  "The song",
  "Style Elements:",
  "Explanation",
  "Translation",
  "Meaning",
  "Note:",
  "Here are",
  "This song",
)

# Each phrase removes everything from its first occurrence to the end of the text.
_TRAILING_PATTERNS: Final[tuple[re.Pattern[str], ...]] = tuple(re.compile(re.escape(phrase) + r".*$", re.IGNORECASE | re.DOTALL) for phrase in TRAILING_PHRASES)


def clean_lyrics(raw: str) -> str:
  """Strip model chatter from a lyric draft, keeping only the labelled song body."""
  cleaned = raw.strip()

  marker = SECTION_MARKER.search(cleaned)
  if marker is not None:
    cleaned = cleaned[marker.start() :]

  for pattern in _MARKDOWN_SPANS:
    cleaned = pattern.sub("", cleaned)

  for pattern in _TRAILING_PATTERNS:
    cleaned = pattern.sub("", cleaned)

  return cleaned.strip()


class LyricistAgent:
  """Drafts Hindi lyrics for a theme using reference songs as inspiration."""

  name = "LyricistAgent"

  def __init__(self, model: AIModel) -> None:
    self._model = model

  async def draft(self, theme: str, style_tags: Sequence[str], references: Sequence[str]) -> str:
    """Request one draft and return the cleaned lyrics.

    Raises whatever the model raises, and ValueError when nothing usable
    remains after cleaning. Callers decide on the fallback.
    """
    prompt = render_lyrics_prompt(theme, style_tags, references)
    response = await self._model.generate(prompt)
    lyrics = clean_lyrics(response.content)
    if not lyrics:
      raise ValueError("Model returned no usable lyrics after cleaning.")

    logger.info("%s drafted %s characters of lyrics using %s references.", self.name, len(lyrics), len(references))
    return lyrics
