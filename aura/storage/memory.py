"""
Aura — In-Memory Storage

Process-local storage for tests and throwaway sessions. Records are
copied on the way in and out so callers never share mutable state with
the store.
"""

from __future__ import annotations

from typing import Any

from aura.primitives.affect import EmotionState
from aura.primitives.conversation import ChatMessage, CompanionSettings
from aura.primitives.memory import (
    EmotionalTrace,
    EpisodicMemory,
    IdentityMemory,
    SemanticMemory,
)
from aura.primitives.reflection import MonologueEntry, SelfBelief, SelfState
from aura.storage.base import Storage


class InMemoryStorage(Storage):
    def __init__(
        self,
        settings: CompanionSettings | None = None,
        emotion: EmotionState | None = None,
    ) -> None:
        self._settings = settings or CompanionSettings()
        self._emotion = emotion or EmotionState()
        self.messages: list[ChatMessage] = []
        self.episodic: list[EpisodicMemory] = []
        self.traces: dict[str, EmotionalTrace] = {}
        self.semantic: dict[str, SemanticMemory] = {}
        self.identity: dict[str, IdentityMemory] = {}
        self.self_states: list[SelfState] = []
        self.monologues: list[MonologueEntry] = []
        self.self_beliefs: list[SelfBelief] = []

    async def get_settings(self) -> CompanionSettings:
        return self._settings.model_copy(deep=True)

    async def update_settings(self, updates: dict[str, Any]) -> CompanionSettings:
        self._settings = self._settings.model_copy(update=updates, deep=True)
        return self._settings.model_copy(deep=True)

    async def get_emotion_state(self) -> EmotionState:
        return self._emotion.model_copy()

    async def save_emotion_state(self, state: EmotionState) -> None:
        self._emotion = state.model_copy()

    async def append_message(self, message: ChatMessage) -> None:
        self.messages.append(message.model_copy())

    async def recent_messages(
        self,
        limit: int,
        conversation_id: str | None = None,
    ) -> list[ChatMessage]:
        if limit <= 0:
            return []
        pool = [
            m for m in self.messages
            if conversation_id is None or m.conversation_id == conversation_id
        ]
        return [m.model_copy() for m in pool[-limit:]]

    async def create_episodic(self, memory: EpisodicMemory) -> None:
        self.episodic.append(memory)

    async def recent_episodic(self, limit: int) -> list[EpisodicMemory]:
        return list(reversed(self.episodic))[:limit]

    async def set_episodic_embedding(self, memory_id: str, embedding: list[float]) -> None:
        for i, memory in enumerate(self.episodic):
            if memory.id == memory_id:
                self.episodic[i] = memory.model_copy(update={"embedding": embedding})
                return

    async def get_trace(self, pattern: str) -> EmotionalTrace | None:
        trace = self.traces.get(pattern)
        return trace.model_copy() if trace else None

    async def upsert_trace(self, trace: EmotionalTrace) -> None:
        self.traces[trace.pattern] = trace.model_copy()

    async def top_traces(self, limit: int) -> list[EmotionalTrace]:
        ranked = sorted(self.traces.values(), key=lambda t: t.confidence, reverse=True)
        return [t.model_copy() for t in ranked[:limit]]

    async def upsert_semantic(self, memory: SemanticMemory) -> SemanticMemory:
        existing = self.semantic.get(memory.key)
        if existing is not None:
            # Value replaced; identity and embedding of the key survive
            memory = existing.model_copy(update={
                "value": memory.value,
                "source": memory.source,
                "timestamp": memory.timestamp,
                "embedding": memory.embedding or existing.embedding,
            })
        self.semantic[memory.key] = memory.model_copy()
        return memory

    async def get_semantic(self, key: str) -> SemanticMemory | None:
        memory = self.semantic.get(key)
        return memory.model_copy() if memory else None

    async def list_semantic(self) -> list[SemanticMemory]:
        return [m.model_copy() for m in self.semantic.values()]

    async def set_semantic_embedding(self, key: str, embedding: list[float]) -> None:
        memory = self.semantic.get(key)
        if memory is not None:
            self.semantic[key] = memory.model_copy(update={"embedding": embedding})

    async def upsert_identity(self, memory: IdentityMemory) -> IdentityMemory:
        existing = self.identity.get(memory.belief)
        if existing is not None:
            memory = existing.model_copy(
                update={"confidence": max(existing.confidence, memory.confidence)}
            )
        self.identity[memory.belief] = memory.model_copy()
        return memory

    async def list_identity(self) -> list[IdentityMemory]:
        return [m.model_copy() for m in self.identity.values()]

    async def create_self_state(self, state: SelfState) -> None:
        self.self_states.append(state)

    async def latest_self_state(self) -> SelfState | None:
        return self.self_states[-1] if self.self_states else None

    async def create_monologue(self, entry: MonologueEntry) -> None:
        self.monologues.append(entry.model_copy())

    async def unsurfaced_monologues(self, limit: int) -> list[MonologueEntry]:
        pending = [m for m in reversed(self.monologues) if not m.surfaced]
        return [m.model_copy() for m in pending[:limit]]

    async def mark_monologue_surfaced(self, entry_id: str) -> None:
        for entry in self.monologues:
            if entry.id == entry_id:
                entry.surfaced = True
                return

    async def add_self_belief(self, belief: SelfBelief) -> None:
        self.self_beliefs.append(belief.model_copy())

    async def list_self_beliefs(self) -> list[SelfBelief]:
        return [b.model_copy() for b in self.self_beliefs]
