"""Provider implementations."""

from app.ai.providers.base import AIModel, EmbeddingModel, ModelResponse, Provider, SimpleModelResponse
from app.ai.providers.gemini import GeminiEmbeddingModel, GeminiModel, GeminiProvider

__all__ = ["AIModel", "EmbeddingModel", "ModelResponse", "SimpleModelResponse", "Provider", "GeminiModel", "GeminiEmbeddingModel", "GeminiProvider"]
