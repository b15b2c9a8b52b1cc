"""
Aura — Memory Promotion Engine

Rule evaluation over the session memory. Two independent rules, both of
which may fire on the same turn:

  Episodic  significance ≥ threshold and emotion in the allow-list
            → one immutable EpisodicMemory per qualifying turn
  Trace     unresolved, low emotion, support/venting intent → upsert the
            "{intent}_{emotion}" EmotionalTrace

Nothing firing is the common case. Episodic memories are rare markers,
not logs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from aura.primitives.common import clamp, utc_now
from aura.primitives.memory import (
    DecayRate,
    EmotionalTrace,
    EmotionalWeight,
    EpisodicMemory,
    SessionMemory,
)

if TYPE_CHECKING:
    from aura.config import MemoryConfig
    from aura.storage.base import Storage

logger = structlog.get_logger()

FALLBACK_SUMMARY = "Significant moment detected."


@dataclass
class PromotionResult:
    episodic: EpisodicMemory | None = None
    trace: EmotionalTrace | None = None

    @property
    def promoted(self) -> bool:
        return self.episodic is not None or self.trace is not None


def qualifies_for_episodic(session: SessionMemory, config: MemoryConfig) -> bool:
    return (
        session.significance >= config.episodic_threshold
        and session.dominant_emotion in config.promotable_emotions
    )


def qualifies_for_trace(session: SessionMemory, config: MemoryConfig) -> bool:
    return (
        session.unresolved
        and session.dominant_emotion == "low"
        and (session.dominant_intent or "") in config.trace_intents
    )


def trace_pattern(session: SessionMemory) -> str:
    return f"{session.dominant_intent}_{session.dominant_emotion}"


class MemoryPromotionEngine:
    def __init__(self, storage: Storage, config: MemoryConfig) -> None:
        self._storage = storage
        self._config = config
        self._logger = logger.bind(system="memory.promotion")

    def build_episode(
        self,
        session: SessionMemory,
        narrative: str | None = None,
        now: datetime | None = None,
    ) -> EpisodicMemory:
        heavy = session.significance >= self._config.high_weight_threshold
        return EpisodicMemory(
            summary=session.summary or FALLBACK_SUMMARY,
            narrative=narrative,
            emotion=session.dominant_emotion,
            importance=session.significance,
            emotional_weight=EmotionalWeight.HIGH if heavy else EmotionalWeight.MEDIUM,
            decay_rate=DecayRate.SLOW if heavy else DecayRate.NORMAL,
            created_at=now or utc_now(),
        )

    def next_trace(
        self,
        existing: EmotionalTrace | None,
        pattern: str,
        now: datetime | None = None,
    ) -> EmotionalTrace:
        """Seed a new trace, or strengthen an existing one. Never weakens."""
        now = now or utc_now()
        if existing is None:
            return EmotionalTrace(
                pattern=pattern,
                confidence=self._config.trace_seed_confidence,
                evidence_count=1,
                last_updated=now,
            )
        return existing.model_copy(update={
            "confidence": clamp(existing.confidence + self._config.trace_confidence_increment),
            "evidence_count": existing.evidence_count + 1,
            "last_updated": now,
        })

    async def promote(
        self,
        session: SessionMemory,
        narrative: str | None = None,
        now: datetime | None = None,
    ) -> PromotionResult:
        result = PromotionResult()

        if qualifies_for_episodic(session, self._config):
            episode = self.build_episode(session, narrative=narrative, now=now)
            await self._storage.create_episodic(episode)
            result.episodic = episode
            self._logger.info(
                "episodic_memory_stored",
                memory_id=episode.id,
                emotion=episode.emotion,
                importance=round(episode.importance, 2),
                weight=episode.emotional_weight.value if episode.emotional_weight else None,
            )

        if qualifies_for_trace(session, self._config):
            pattern = trace_pattern(session)
            existing = await self._storage.get_trace(pattern)
            trace = self.next_trace(existing, pattern, now=now)
            await self._storage.upsert_trace(trace)
            result.trace = trace
            self._logger.info(
                "emotional_trace_updated",
                pattern=pattern,
                confidence=round(trace.confidence, 2),
                evidence_count=trace.evidence_count,
            )

        if not result.promoted:
            self._logger.debug("no_promotion", significance=round(session.significance, 2))
        return result
