"""Agent implementations."""

from app.ai.agents.lyricist import FALLBACK_LYRICS, LyricistAgent, clean_lyrics

__all__ = ["FALLBACK_LYRICS", "LyricistAgent", "clean_lyrics"]
