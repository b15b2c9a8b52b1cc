"""
Aura — Storage Contract

Async CRUD interface consumed by the turn pipeline and the heartbeat.
Keyed records (traces, semantic facts, identity beliefs) are upserted
atomically by the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aura.primitives.affect import EmotionState
    from aura.primitives.conversation import ChatMessage, CompanionSettings
    from aura.primitives.memory import (
        EmotionalTrace,
        EpisodicMemory,
        IdentityMemory,
        SemanticMemory,
    )
    from aura.primitives.reflection import MonologueEntry, SelfBelief, SelfState


class Storage(ABC):
    # ─── Settings & companion state ──────────────────────────────

    @abstractmethod
    async def get_settings(self) -> CompanionSettings:
        """The single settings record. Defaults when nothing is stored yet."""
        ...

    @abstractmethod
    async def update_settings(self, updates: dict[str, Any]) -> CompanionSettings:
        ...

    @abstractmethod
    async def get_emotion_state(self) -> EmotionState:
        """The companion's persisted emotion vector. Defaults when absent."""
        ...

    @abstractmethod
    async def save_emotion_state(self, state: EmotionState) -> None:
        ...

    # ─── Transcript ──────────────────────────────────────────────

    @abstractmethod
    async def append_message(self, message: ChatMessage) -> None:
        ...

    @abstractmethod
    async def recent_messages(
        self,
        limit: int,
        conversation_id: str | None = None,
    ) -> list[ChatMessage]:
        """Most recent ``limit`` messages in chronological order (oldest first)."""
        ...

    # ─── Episodic ────────────────────────────────────────────────

    @abstractmethod
    async def create_episodic(self, memory: EpisodicMemory) -> None:
        ...

    @abstractmethod
    async def recent_episodic(self, limit: int) -> list[EpisodicMemory]:
        """Newest first."""
        ...

    @abstractmethod
    async def set_episodic_embedding(self, memory_id: str, embedding: list[float]) -> None:
        ...

    # ─── Emotional traces ────────────────────────────────────────

    @abstractmethod
    async def get_trace(self, pattern: str) -> EmotionalTrace | None:
        ...

    @abstractmethod
    async def upsert_trace(self, trace: EmotionalTrace) -> None:
        """Insert, or replace the record with the same pattern."""
        ...

    @abstractmethod
    async def top_traces(self, limit: int) -> list[EmotionalTrace]:
        """Highest confidence first."""
        ...

    # ─── Semantic facts ──────────────────────────────────────────

    @abstractmethod
    async def upsert_semantic(self, memory: SemanticMemory) -> SemanticMemory:
        """Insert, or replace the value of the fact with the same key."""
        ...

    @abstractmethod
    async def get_semantic(self, key: str) -> SemanticMemory | None:
        ...

    @abstractmethod
    async def list_semantic(self) -> list[SemanticMemory]:
        ...

    @abstractmethod
    async def set_semantic_embedding(self, key: str, embedding: list[float]) -> None:
        ...

    # ─── Identity beliefs about the user ─────────────────────────

    @abstractmethod
    async def upsert_identity(self, memory: IdentityMemory) -> IdentityMemory:
        """Insert, or merge confidence (keep the higher) with the same belief."""
        ...

    @abstractmethod
    async def list_identity(self) -> list[IdentityMemory]:
        ...

    # ─── Self-state & monologue ──────────────────────────────────

    @abstractmethod
    async def create_self_state(self, state: SelfState) -> None:
        ...

    @abstractmethod
    async def latest_self_state(self) -> SelfState | None:
        ...

    @abstractmethod
    async def create_monologue(self, entry: MonologueEntry) -> None:
        ...

    @abstractmethod
    async def unsurfaced_monologues(self, limit: int) -> list[MonologueEntry]:
        """Newest first."""
        ...

    @abstractmethod
    async def mark_monologue_surfaced(self, entry_id: str) -> None:
        ...

    # ─── Self-beliefs ────────────────────────────────────────────

    @abstractmethod
    async def add_self_belief(self, belief: SelfBelief) -> None:
        ...

    @abstractmethod
    async def list_self_beliefs(self) -> list[SelfBelief]:
        """Oldest first."""
        ...

    async def close(self) -> None:
        return None
