"""Unit tests for lyric drafting and clean-up."""

from __future__ import annotations

import pytest

from app.ai.agents.lyricist import LyricistAgent, clean_lyrics
from app.ai.agents.prompts import REFERENCE_EXCERPT_CHARS, render_lyrics_prompt


def test_clean_lyrics_drops_preamble_markdown_and_trailing_notes() -> None:
  raw = """Sure! Here is your song:

[Verse]
**Dil** ki baatein *softly* kehta hoon
Tere bina main adhoora rehta hoon

[Chorus]
Tu hi meri duniya

Note: these lyrics use simple Hindi words."""

  cleaned = clean_lyrics(raw)

  assert cleaned.startswith("[Verse]")
  assert "**" not in cleaned
  assert "softly" not in cleaned
  assert "Note:" not in cleaned
  assert cleaned.endswith("Tu hi meri duniya")


def test_clean_lyrics_without_section_marker_keeps_text() -> None:
  assert clean_lyrics("  tere naam  ") == "tere naam"


def test_clean_lyrics_trailing_phrase_match_is_case_insensitive() -> None:
  cleaned = clean_lyrics("[Chorus]\nSaath chalenge\n\nTRANSLATION: We will walk together")
  assert cleaned == "[Chorus]\nSaath chalenge"


def test_prompt_includes_theme_style_and_truncated_references() -> None:
  long_reference = "a" * (REFERENCE_EXCERPT_CHARS + 50)
  prompt = render_lyrics_prompt("monsoon romance", ["romantic", "acoustic"], [long_reference, "short one"])

  assert 'USER REQUEST: "monsoon romance"' in prompt
  assert "STYLE: romantic, acoustic" in prompt
  assert "1. " + "a" * REFERENCE_EXCERPT_CHARS + "..." in prompt
  assert "a" * (REFERENCE_EXCERPT_CHARS + 1) not in prompt
  assert "2. short one..." in prompt


def test_prompt_without_references_has_no_inspiration_block() -> None:
  prompt = render_lyrics_prompt("monsoon romance", [], [])
  assert "REFERENCE SONGS" not in prompt
  assert "{{" not in prompt


@pytest.mark.anyio
async def test_draft_returns_cleaned_lyrics(fakes) -> None:
  model = fakes.Model("Here you go\n[Verse]\nBaarish ki boondein\nThis song is about rain.")
  lyrics = await LyricistAgent(model).draft("rain", ["romantic"], ["Yeh dosti"])

  assert lyrics == "[Verse]\nBaarish ki boondein"
  assert "rain" in model.prompts[0]


@pytest.mark.anyio
async def test_draft_raises_when_nothing_survives_cleaning(fakes) -> None:
  model = fakes.Model("Note: I could not write lyrics for this theme.")
  with pytest.raises(ValueError):
    await LyricistAgent(model).draft("rain", [], [])


@pytest.mark.anyio
async def test_draft_propagates_model_errors(fakes) -> None:
  model = fakes.Model(error=RuntimeError("Gemini generation failed: 503"))
  with pytest.raises(RuntimeError):
    await LyricistAgent(model).draft("rain", [], [])
