"""
Aura — Embedding Client Abstraction

Embeddings are best-effort. They sharpen episodic and semantic retrieval
when available; nothing in the turn pipeline depends on them.

Dimension is model-dependent:
  - gemini-embedding-001: 3072
  - mistral-embed: 1024
  - text-embedding-3-small: 1536
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx
import numpy as np
import structlog

if TYPE_CHECKING:
    from aura.config import EmbeddingConfig, LLMConfig

logger = structlog.get_logger()


class EmbeddingClient(ABC):
    """Abstract interface for text embedding."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        ...


class GeminiEmbeddingClient(EmbeddingClient):
    """Gemini ``embedContent`` endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-embedding-001",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
    ) -> None:
        self._model = model
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "x-goog-api-key": api_key.strip(),
                "Content-Type": "application/json",
            },
            timeout=30.0,
        )

    async def embed(self, text: str) -> list[float]:
        payload = {
            "model": f"models/{self._model}",
            "content": {"parts": [{"text": text}]},
        }
        response = await self._client.post(f"/models/{self._model}:embedContent", json=payload)
        response.raise_for_status()
        values = response.json().get("embedding", {}).get("values")
        if not values:
            raise ValueError("Gemini API returned no embedding")
        return values  # type: ignore[no-any-return]

    async def close(self) -> None:
        await self._client.aclose()


class OpenAICompatibleEmbeddingClient(EmbeddingClient):
    """``/embeddings`` endpoint shared by OpenAI and Mistral."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str = "https://api.openai.com/v1",
    ) -> None:
        self._model = model
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key.strip()}",
                "Content-Type": "application/json",
            },
            timeout=30.0,
        )

    async def embed(self, text: str) -> list[float]:
        payload: dict[str, Any] = {"model": self._model, "input": [text]}
        response = await self._client.post("/embeddings", json=payload)
        response.raise_for_status()
        data = response.json().get("data", [])
        if not data:
            raise ValueError("Embedding API returned no embeddings")
        return data[0]["embedding"]  # type: ignore[no-any-return]

    async def close(self) -> None:
        await self._client.aclose()


class OllamaEmbeddingClient(EmbeddingClient):
    """Local embeddings via Ollama."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        endpoint: str = "http://localhost:11434",
    ) -> None:
        self._model = model
        self._client = httpx.AsyncClient(base_url=endpoint, timeout=60.0)

    async def embed(self, text: str) -> list[float]:
        response = await self._client.post(
            "/api/embeddings",
            json={"model": self._model, "prompt": text},
        )
        response.raise_for_status()
        values = response.json().get("embedding")
        if not values:
            raise ValueError("Ollama returned no embedding")
        return values  # type: ignore[no-any-return]

    async def close(self) -> None:
        await self._client.aclose()


class MockEmbeddingClient(EmbeddingClient):
    """
    Mock embedding client for testing and development.
    Returns normalised vectors seeded from the text, so equal texts
    always embed identically.
    """

    def __init__(self, dimension: int = 256) -> None:
        self._dimension = dimension

    async def embed(self, text: str) -> list[float]:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        rng = np.random.default_rng(seed)
        vec = rng.standard_normal(self._dimension).astype(np.float32)
        vec = vec / np.linalg.norm(vec)
        return vec.tolist()  # type: ignore[no-any-return]

    async def close(self) -> None:
        pass


def create_embedding_client(
    config: EmbeddingConfig,
    llm: LLMConfig,
) -> EmbeddingClient | None:
    """
    Factory to create the configured embedding client.

    ``provider`` follows the generation provider; ``none`` disables
    embeddings entirely.
    """
    if config.strategy == "none":
        return None
    if config.strategy == "mock":
        return MockEmbeddingClient(dimension=config.dimension)
    if config.strategy != "provider":
        raise ValueError(f"Unknown embedding strategy: {config.strategy}")

    api_key = config.api_key or llm.api_key
    if llm.provider == "gemini":
        return GeminiEmbeddingClient(
            api_key=api_key,
            model=config.model or "gemini-embedding-001",
        )
    elif llm.provider == "mistral":
        return OpenAICompatibleEmbeddingClient(
            api_key=api_key,
            model=config.model or "mistral-embed",
            base_url="https://api.mistral.ai/v1",
        )
    elif llm.provider == "openai":
        return OpenAICompatibleEmbeddingClient(
            api_key=api_key,
            model=config.model or "text-embedding-3-small",
            base_url=llm.base_url or "https://api.openai.com/v1",
        )
    elif llm.provider == "ollama":
        return OllamaEmbeddingClient(
            model=config.model or "nomic-embed-text",
            endpoint=llm.base_url or "http://localhost:11434",
        )

    logger.info("embedding_disabled", provider=llm.provider)
    return None


async def safe_embed(client: EmbeddingClient | None, text: str) -> list[float] | None:
    """Embed ``text``, returning None on any failure or when embeddings are off."""
    if client is None or not text.strip():
        return None
    try:
        vector = await client.embed(text)
    except Exception as exc:
        logger.warning("embedding_failed", error=str(exc))
        return None
    return vector or None


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Compute cosine similarity between two embedding vectors."""
    a_arr = np.array(a, dtype=np.float32)
    b_arr = np.array(b, dtype=np.float32)
    if a_arr.shape != b_arr.shape:
        return 0.0
    dot = np.dot(a_arr, b_arr)
    norm_a = np.linalg.norm(a_arr)
    norm_b = np.linalg.norm(b_arr)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(dot / (norm_a * norm_b))
