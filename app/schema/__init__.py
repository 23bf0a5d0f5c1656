"""Schema package exports."""

from .lyrics import EMBEDDING_DIMENSIONS, LyricsIndexEntry
from .songs import GenerationLog, Song

__all__ = ["EMBEDDING_DIMENSIONS", "GenerationLog", "LyricsIndexEntry", "Song"]
