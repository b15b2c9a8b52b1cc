"""
Aura — External Service Clients

Generation and embedding providers, plus the heartbeat scheduler.
"""

from aura.clients.embedding import (
    EmbeddingClient,
    MockEmbeddingClient,
    cosine_similarity,
    create_embedding_client,
    safe_embed,
)
from aura.clients.llm import (
    GenerateOptions,
    LLMProvider,
    LLMResponse,
    Message,
    ProviderCapabilities,
    create_llm_provider,
)
from aura.clients.scheduler import HeartbeatScheduler

__all__ = [
    "EmbeddingClient",
    "MockEmbeddingClient",
    "cosine_similarity",
    "create_embedding_client",
    "safe_embed",
    "GenerateOptions",
    "LLMProvider",
    "LLMResponse",
    "Message",
    "ProviderCapabilities",
    "create_llm_provider",
    "HeartbeatScheduler",
]
