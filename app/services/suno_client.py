"""HTTP client for the Suno music-generation API."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
import msgspec

from app.config import Settings

logger = logging.getLogger(__name__)

CREATE_PATH = "/api/v1/suno/create_music"
TASK_PATH = "/api/v1/suno/task/{task_id}"


class MusicServiceError(RuntimeError):
  """Raised when the music service cannot accept a job (transport failure, non-2xx or malformed reply)."""

  def __init__(self, message: str, *, status_code: int | None = None) -> None:
    super().__init__(message)
    self.status_code = status_code


class SunoClip(msgspec.Struct):
  """One generated clip inside a task status reply."""

  clip_id: str | None = None
  state: str | None = None
  audio_url: str | None = None
  video_url: str | None = None
  image_url: str | None = None
  duration: float | None = None
  title: str | None = None
  tags: str | None = None


class SunoTaskEnvelope(msgspec.Struct):
  code: int | None = None
  data: list[SunoClip] | None = None
  message: str | None = None


class SunoCreateReply(msgspec.Struct):
  task_id: str | None = None
  message: str | None = None


class TaskNotReady(msgspec.Struct, tag="not_ready"):
  message: str = "Task not ready"


class TaskSucceeded(msgspec.Struct, tag="succeeded"):
  clip: SunoClip


class TaskFailed(msgspec.Struct, tag="failed"):
  message: str = "Song generation failed on the music service"


class TaskTransportError(msgspec.Struct, tag="transport_error"):
  message: str
  status_code: int | None = None


TaskStatusResult = TaskNotReady | TaskSucceeded | TaskFailed | TaskTransportError


def classify_task(envelope: SunoTaskEnvelope) -> TaskStatusResult:
  """Map a decoded status reply onto a single outcome.

  Any succeeded clip wins; otherwise any failed clip fails the task; every
  other combination (empty list, pending/running or unrecognised states) is
  treated as not ready yet.
  """
  clips = envelope.data or []
  for clip in clips:
    if clip.state == "succeeded":
      return TaskSucceeded(clip=clip)
  if any(clip.state == "failed" for clip in clips):
    return TaskFailed()
  unknown = sorted({clip.state or "<missing>" for clip in clips} - {"pending", "running"})
  if unknown:
    logger.warning("Music task reported unrecognised clip states %s; treating as not ready.", unknown)
  return TaskNotReady(message=envelope.message or "Task not ready")


class MusicService(Protocol):
  """Contract for the asynchronous audio-creation service."""

  async def create_music(self, *, lyrics: str, title: str, tags: str) -> str:
    """Submit lyrics and return the external task id. Raises MusicServiceError."""
    ...

  async def fetch_task(self, task_id: str) -> TaskStatusResult:
    """Return the current outcome of a task. Never raises for transport failures."""
    ...


class SunoClient(MusicService):
  """Thin async wrapper around the Suno REST endpoints."""

  def __init__(self, *, api_key: str, base_url: str, model_version: str = "chirp-v5", timeout_seconds: float = 30.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
    if not api_key:
      raise ValueError("SUNO_API_KEY is required to call the music service.")
    self._api_key = api_key
    self._base_url = base_url.rstrip("/")
    self._model_version = model_version
    self._timeout = timeout_seconds
    self._transport = transport

  @classmethod
  def from_settings(cls, settings: Settings) -> SunoClient:
    return cls(api_key=settings.suno_api_key or "", base_url=settings.suno_base_url, model_version=settings.suno_model_version, timeout_seconds=settings.suno_timeout_seconds)

  def _build_client(self) -> httpx.AsyncClient:
    headers = {"authorization": f"Bearer {self._api_key}", "content-type": "application/json"}
    return httpx.AsyncClient(base_url=self._base_url, headers=headers, timeout=self._timeout, transport=self._transport, trust_env=False)

  def build_create_payload(self, *, lyrics: str, title: str, tags: str) -> dict[str, Any]:
    return {"task_type": "create_music", "custom_mode": True, "prompt": lyrics, "title": title, "tags": tags, "mv": self._model_version}

  async def create_music(self, *, lyrics: str, title: str, tags: str) -> str:
    """Submit lyrics in custom mode and return the task id."""
    payload = self.build_create_payload(lyrics=lyrics, title=title, tags=tags)
    try:
      async with self._build_client() as client:
        response = await client.post(CREATE_PATH, json=payload)
    except httpx.HTTPError as e:
      raise MusicServiceError(f"Music service request failed: {e}") from e

    if not response.is_success:
      raise MusicServiceError(f"Music service error ({response.status_code}): {response.text}", status_code=response.status_code)

    try:
      reply = msgspec.json.decode(response.content, type=SunoCreateReply)
    except msgspec.DecodeError as e:
      raise MusicServiceError(f"Music service returned an unreadable reply: {e}", status_code=response.status_code) from e

    if not reply.task_id:
      raise MusicServiceError("No task_id received from music service", status_code=response.status_code)

    logger.info("Music generation started with task %s", reply.task_id)
    return reply.task_id

  async def fetch_task(self, task_id: str) -> TaskStatusResult:
    """Fetch and classify the status of one task."""
    try:
      async with self._build_client() as client:
        response = await client.get(TASK_PATH.format(task_id=task_id))
    except httpx.HTTPError as e:
      return TaskTransportError(message=str(e) or e.__class__.__name__)

    if response.status_code == 202:
      return TaskNotReady(message=_extract_not_ready_message(response))

    if not response.is_success:
      return TaskTransportError(message=f"Music service error ({response.status_code}): {response.text}", status_code=response.status_code)

    try:
      envelope = msgspec.json.decode(response.content, type=SunoTaskEnvelope)
    except msgspec.DecodeError as e:
      return TaskTransportError(message=f"Unreadable task status: {e}", status_code=response.status_code)

    return classify_task(envelope)


def _extract_not_ready_message(response: httpx.Response) -> str:
  try:
    body = response.json()
  except ValueError:
    return "Task not ready, please wait"
  if isinstance(body, dict):
    return str(body.get("error") or body.get("message") or "Task not ready, please wait")
  return "Task not ready, please wait"
