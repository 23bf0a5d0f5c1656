"""End-to-end tests for the songs API with in-memory storage and a scripted music service."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from app.ai.agents.lyricist import LyricistAgent
from app.ai.backoff import BackoffPolicy
from app.ai.orchestrator import SongOrchestrator
from app.ai.retrieval import ReferenceRetriever
from app.api.deps import USER_ID_HEADER
from app.jobs.models import SongRecord
from app.jobs.poller import CompletionPoller
from app.jobs.worker import SongJobProcessor
from app.main import app
from app.services.suno_client import SunoClip, TaskNotReady, TaskSucceeded
from app.services.tasks.factory import get_task_runner
from app.storage.lyrics_repo import CorpusEntry

OWNER = {USER_ID_HEADER: "user-1"}
STRANGER = {USER_ID_HEADER: "user-2"}
CLIP = SunoClip(clip_id="clip-1", state="succeeded", audio_url="https://cdn.test/a.mp3", video_url="https://cdn.test/v.mp4", image_url="https://cdn.test/i.jpg", duration=200)


@pytest.fixture
def music(fakes):
  return fakes.Music(task_id="task-1", statuses=[TaskNotReady(), TaskNotReady(), TaskNotReady(), TaskSucceeded(clip=CLIP)])


@pytest.fixture
def processor(fakes, songs_repo, music) -> SongJobProcessor:
  corpus = fakes.CorpusRepository([CorpusEntry(name="Yeh Dosti", text="Yeh dosti hum nahin todhenge")])
  retriever = ReferenceRetriever.default(corpus, fakes.Embedder(), threshold=0.01)
  orchestrator = SongOrchestrator(retriever=retriever, lyricist=LyricistAgent(fakes.Model("[Verse]\nDiye jal rahe hain")), music=music)
  poller = CompletionPoller(music, policy=BackoffPolicy(), max_attempts=5, sleep=fakes.Sleep())
  return SongJobProcessor(songs_repo=songs_repo, orchestrator=orchestrator, poller=poller)


@pytest.fixture
async def client(songs_repo, processor) -> AsyncIterator[AsyncClient]:
  with patch("app.services.songs._get_songs_repo", return_value=songs_repo), patch("app.services.songs._get_song_processor", return_value=processor):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
      yield ac


async def _seed(songs_repo, **overrides: object) -> SongRecord:  # type: ignore[no-untyped-def]
  values: dict[str, object] = {"song_id": "song-1", "user_id": "user-1", "title": "Diwali", "theme": "festival", "status": "generating", "external_job_id": "task-1"}
  values.update(overrides)
  return await songs_repo.create_song(SongRecord(**values))  # type: ignore[arg-type]


@pytest.mark.anyio
async def test_generate_runs_pipeline_to_completion(client, songs_repo) -> None:
  response = await client.post("/v1/songs/generate", json={"title": "Diwali", "theme": "A beautiful love story during a festival", "styles": "romantic, acoustic"}, headers=OWNER)

  assert response.status_code == 200
  body = response.json()
  assert body["success"] is True
  assert body["message"] == "Song generation started"
  song_id = body["song_id"]

  await get_task_runner().wait_for(song_id)

  detail = (await client.get(f"/v1/songs/{song_id}", headers=OWNER)).json()
  assert detail["status"] == "completed"
  assert detail["audio_url"] == "https://cdn.test/a.mp3"
  assert detail["completed_at"] is not None
  assert detail["genre"] == "romantic"
  assert detail["tags"] == ["romantic", "acoustic"]
  assert detail["reference_songs"] == ["Yeh Dosti"]

  logs = (await client.get(f"/v1/songs/{song_id}/logs", headers=OWNER)).json()
  assert [entry["step"] for entry in logs] == ["generation_started", "music_generation_started", "generation_completed"]


@pytest.mark.anyio
async def test_requests_without_identity_are_rejected(client) -> None:
  response = await client.get("/v1/songs")
  assert response.status_code == 401


@pytest.mark.anyio
async def test_invalid_generate_payload_returns_422(client) -> None:
  response = await client.post("/v1/songs/generate", json={"title": "", "theme": "x"}, headers=OWNER)
  assert response.status_code == 422
  assert "requestId" in response.json()


@pytest.mark.anyio
async def test_songs_are_private_to_their_owner(client, songs_repo) -> None:
  await _seed(songs_repo)

  assert (await client.get("/v1/songs/song-1", headers=STRANGER)).status_code == 403
  assert (await client.get("/v1/songs/missing", headers=OWNER)).status_code == 404
  assert (await client.get("/v1/songs", headers=STRANGER)).json() == []
  assert [song["id"] for song in (await client.get("/v1/songs", headers=OWNER)).json()] == ["song-1"]


@pytest.mark.anyio
async def test_update_like_plays_and_edits(client, songs_repo) -> None:
  await _seed(songs_repo, status="completed")

  liked = await client.patch("/v1/songs/song-1", json={"liked": True, "increment_plays": True}, headers=OWNER)
  assert liked.status_code == 200
  assert liked.json()["is_liked"] is True
  assert liked.json()["play_count"] == 1
  assert liked.json()["plays"] == 1

  edited = await client.patch("/v1/songs/song-1", json={"title": "Diwali Remix"}, headers=OWNER)
  assert edited.json()["title"] == "Diwali Remix"

  assert (await client.patch("/v1/songs/song-1", json={}, headers=OWNER)).status_code == 400


@pytest.mark.anyio
async def test_delete_song(client, songs_repo) -> None:
  await _seed(songs_repo)

  assert (await client.delete("/v1/songs/song-1", headers=STRANGER)).status_code == 403
  response = await client.delete("/v1/songs/song-1", headers=OWNER)

  assert response.status_code == 200
  assert response.json() == {"message": "Song deleted successfully"}
  assert await songs_repo.get_song("song-1") is None


@pytest.mark.anyio
async def test_retry_checks_status_once(client, songs_repo, music) -> None:
  await _seed(songs_repo)

  first = await client.post("/v1/songs/song-1/retry", headers=OWNER)
  assert first.json()["status"] == "generating"
  assert first.json()["success"] is True

  # Drain the remaining not-ready answers so the next check sees the finished clip.
  music.statuses = [TaskSucceeded(clip=CLIP)]
  second = await client.post("/v1/songs/song-1/retry", headers=OWNER)

  assert second.json() == {"success": True, "status": "completed", "message": "Song generation completed successfully!", "audio_url": "https://cdn.test/a.mp3", "error": None}
  assert music.submissions == []
  assert (await client.post("/v1/songs/song-1/retry", headers=OWNER)).status_code == 400


@pytest.mark.anyio
async def test_retry_requires_task_id(client, songs_repo) -> None:
  await _seed(songs_repo, status="pending", external_job_id=None)
  response = await client.post("/v1/songs/song-1/retry", headers=OWNER)
  assert response.status_code == 400


@pytest.mark.anyio
async def test_bulk_check_updates_unresolved_songs(client, songs_repo, music) -> None:
  music.statuses = [TaskSucceeded(clip=CLIP)]
  await _seed(songs_repo, song_id="song-1")
  await _seed(songs_repo, song_id="song-2", external_job_id="mock_1700000000000_abcdefghi")
  await _seed(songs_repo, song_id="song-3", status="completed", external_job_id="task-3")

  response = await client.post("/v1/songs/check-status", headers=OWNER)

  body = response.json()
  assert body["total"] == 2
  assert body["updated"] == 2
  assert {result["status"] for result in body["results"]} == {"completed"}
  assert (await songs_repo.get_song("song-2")).audio_url == "https://cdn1.suno.ai/mock-audio-url.mp3"


@pytest.mark.anyio
async def test_bulk_check_with_nothing_to_do(client) -> None:
  response = await client.post("/v1/songs/check-status", headers=OWNER)
  assert response.json() == {"message": "No songs need status checking", "updated": 0, "total": 0, "results": []}


@pytest.mark.anyio
async def test_health(client) -> None:
  response = await client.get("/health")
  assert response.status_code == 200
  assert response.json() == {"status": "ok"}
  assert response.headers.get("x-request-id")
