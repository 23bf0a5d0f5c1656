"""Assemble the song pipeline from settings."""

from __future__ import annotations

from app.ai.agents.lyricist import LyricistAgent
from app.ai.backoff import BackoffPolicy
from app.ai.orchestrator import SongOrchestrator
from app.ai.providers.gemini import GeminiProvider
from app.ai.retrieval import ReferenceRetriever
from app.config import Settings
from app.jobs.poller import CompletionPoller
from app.jobs.worker import SongJobProcessor
from app.services.suno_client import MusicService, SunoClient
from app.storage.factory import _get_lyrics_repo, _get_songs_repo


def _get_music_service(settings: Settings) -> MusicService:
  return SunoClient.from_settings(settings)


def _get_poller(settings: Settings, music: MusicService | None = None) -> CompletionPoller:
  return CompletionPoller(
    music or _get_music_service(settings), policy=BackoffPolicy.from_settings(settings), max_attempts=settings.poll_max_attempts, placeholder_delay_seconds=settings.placeholder_delay_seconds
  )


def _get_orchestrator(settings: Settings, music: MusicService | None = None) -> SongOrchestrator:
  provider = GeminiProvider(api_key=settings.gemini_api_key)
  retriever = ReferenceRetriever.default(_get_lyrics_repo(settings), provider.get_embedding_model(settings.embedding_model), threshold=settings.match_threshold)
  lyricist = LyricistAgent(provider.get_model(settings.lyrics_model))
  return SongOrchestrator(
    retriever=retriever, lyricist=lyricist, music=music or _get_music_service(settings), reference_count=settings.reference_count, placeholder_on_submit_failure=settings.placeholder_on_submit_failure
  )


def _get_song_processor(settings: Settings) -> SongJobProcessor:
  """Build a processor wired to the configured repositories and external services."""
  music = _get_music_service(settings)
  return SongJobProcessor(songs_repo=_get_songs_repo(settings), orchestrator=_get_orchestrator(settings, music), poller=_get_poller(settings, music))
