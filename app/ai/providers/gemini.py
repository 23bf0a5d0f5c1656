"""Gemini provider implementation using the google-genai SDK."""

from __future__ import annotations

import logging
import os
from typing import Final

from google import genai

from app.ai.providers.base import AIModel, EmbeddingModel, ModelResponse, Provider, SimpleModelResponse

logger = logging.getLogger(__name__)


def _build_client(api_key: str | None) -> genai.Client:
  api_key = api_key or os.getenv("GEMINI_API_KEY")
  if not api_key:
    raise ValueError("GEMINI_API_KEY environment variable is required")
  return genai.Client(api_key=api_key)


class GeminiModel(AIModel):
  """Gemini text model client."""

  def __init__(self, name: str, api_key: str | None = None, client: genai.Client | None = None) -> None:
    self.name: str = name
    self._client = client or _build_client(api_key)

  async def generate(self, prompt: str) -> ModelResponse:
    """Generate a text response from Gemini in a single attempt."""
    try:
      # Use the async client to avoid blocking the asyncio event loop.
      response = await self._client.aio.models.generate_content(model=self.name, contents=prompt)
    except Exception as e:
      raise RuntimeError(f"Gemini generation failed: {e}") from e

    text = response.text
    if not text:
      raise RuntimeError("Gemini returned an empty response.")

    logger.debug("Gemini response (%s chars) from %s", len(text), self.name)
    usage = None
    if response.usage_metadata:
      usage = {"prompt_tokens": response.usage_metadata.prompt_token_count, "completion_tokens": response.usage_metadata.candidates_token_count, "total_tokens": response.usage_metadata.total_token_count}
    return SimpleModelResponse(content=text, usage=usage)


class GeminiEmbeddingModel(EmbeddingModel):
  """Gemini embedding model client."""

  def __init__(self, name: str, api_key: str | None = None, client: genai.Client | None = None) -> None:
    self.name: str = name
    self._client = client or _build_client(api_key)

  async def embed(self, text: str) -> list[float]:
    try:
      response = await self._client.aio.models.embed_content(model=self.name, contents=text)
    except Exception as e:
      raise RuntimeError(f"Gemini embedding failed: {e}") from e

    if not response.embeddings or not response.embeddings[0].values:
      raise RuntimeError("Gemini returned no embedding values.")
    return list(response.embeddings[0].values)


class GeminiProvider(Provider):
  """Gemini provider."""

  _DEFAULT_MODEL: Final[str] = "gemini-2.5-pro"
  _DEFAULT_EMBEDDING_MODEL: Final[str] = "text-embedding-004"
  _AVAILABLE_MODELS: Final[set[str]] = {"gemini-2.5-pro", "gemini-2.5-flash", "gemini-2.0-flash", "gemini-2.0-flash-lite"}
  _AVAILABLE_EMBEDDING_MODELS: Final[set[str]] = {"text-embedding-004", "gemini-embedding-001"}

  def __init__(self, api_key: str | None = None) -> None:
    self.name: str = "gemini"
    self._api_key = api_key
    self._client: genai.Client | None = None

  def _shared_client(self) -> genai.Client:
    # One SDK client serves both text and embedding calls.
    if self._client is None:
      self._client = _build_client(self._api_key)
    return self._client

  def get_model(self, model: str | None = None) -> AIModel:
    """Return a Gemini text model client."""
    model_name = model or self._DEFAULT_MODEL
    if model_name not in self._AVAILABLE_MODELS:
      raise ValueError(f"Unsupported Gemini model '{model_name}'.")
    return GeminiModel(model_name, client=self._shared_client())

  def get_embedding_model(self, model: str | None = None) -> EmbeddingModel:
    """Return a Gemini embedding model client."""
    model_name = model or self._DEFAULT_EMBEDDING_MODEL
    if model_name not in self._AVAILABLE_EMBEDDING_MODELS:
      raise ValueError(f"Unsupported Gemini embedding model '{model_name}'.")
    return GeminiEmbeddingModel(model_name, client=self._shared_client())
