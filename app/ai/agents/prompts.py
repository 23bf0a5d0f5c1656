"""Prompt helpers shared by agents."""

from __future__ import annotations

from collections.abc import Sequence

REFERENCE_EXCERPT_CHARS = 200

_LYRICS_TEMPLATE = """You are a professional Hindi lyricist. Write ORIGINAL, modern Bollywood-style Hindi song lyrics based on the user's request.

USER REQUEST: "{{THEME}}"
STYLE: {{STYLE}}

{{REFERENCES}}
STRICT REQUIREMENTS:
- Output ONLY Hindi song lyrics (Hinglish words allowed sparingly for natural modern feel)
- Avoid very heavy, old-fashioned, or niche Hindi words and cultural references
- Avoid slang, internet memes, or uncommon English words that are hard to pronounce
- Lyrics must be easy to sing with smooth, melodic flow
- Short to medium-length phrases; natural rhythm for modern Bollywood songs
- Modern, youthful, romantic Hindi with memorable rhymes and emotional impact
- Minor English words (like "love", "baby", "forever") are okay, max 1-2 per line
- Song structure: [Verse], [Chorus], [Verse 2], [Chorus], [Bridge], [Outro]
- Verses: 4-6 lines, Chorus: 4 lines
- Maintain emotional depth and connection, with hooks that feel natural in singing
- Do not add explanations, translations, notes or any text outside the lyrics

OUTPUT FORMAT:
[Verse]
Lyrics here...

[Chorus]
Lyrics here...

[Verse 2]
Lyrics here...

[Chorus]
Lyrics here...

[Bridge]
Lyrics here...

[Outro]
Lyrics here...

Generate the modern Hindi lyrics now:"""


def _replace_placeholders(template: str, values: dict[str, str]) -> str:
  """Substitute {{PLACEHOLDER}} markers with request context."""
  rendered = template
  for key, value in values.items():
    rendered = rendered.replace(f"{{{{{key}}}}}", value)

  return rendered


def _format_references(references: Sequence[str]) -> str:
  """Render reference excerpts as a numbered inspiration block, or nothing."""
  if not references:
    return ""
  excerpts = "\n\n".join(f"{index}. {text[:REFERENCE_EXCERPT_CHARS]}..." for index, text in enumerate(references, start=1))
  return (
    "REFERENCE SONGS FOR INSPIRATION:\n"
    f"{excerpts}\n\n"
    "Use these only for emotion, vibe, and flow. Do NOT copy rare, complex, or niche words; "
    "replace them with simple, melodic Hindi or minor English words.\n\n"
  )


def render_lyrics_prompt(theme: str, style_tags: Sequence[str], references: Sequence[str]) -> str:
  """Build the lyric drafting prompt from the theme, style tags and reference bodies."""
  return _replace_placeholders(_LYRICS_TEMPLATE, {"THEME": theme, "STYLE": ", ".join(style_tags), "REFERENCES": _format_references(references)})
