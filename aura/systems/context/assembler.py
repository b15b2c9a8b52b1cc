"""
Aura — Context Assembler

Selects and ranks long-term memory fragments under a fixed budget and
compresses the emotion and session state into a ContextBundle.

Episodic scoring:
  recency  = max(0, 1 - age_h / (24 * window_days))   window: slow 30, normal 7, fast 2
  base     = recency + importance + weight_bonus      bonus: high 0.4, medium 0.2, low 0
  final    = 0.6 * (cos + 1) / 2 + 0.4 * base         only when both vectors exist

Traces rank by confidence. Semantic facts rank by similarity to the input
when it is embedded, else by recency; identity beliefs by confidence.
Every category is capped.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from aura.clients.embedding import cosine_similarity
from aura.primitives.common import hours_between, utc_now
from aura.systems.context.types import (
    ContextBundle,
    EmotionSnapshot,
    InteractionGap,
    MemoryFragments,
    SessionSnapshot,
)

if TYPE_CHECKING:
    from aura.config import ContextConfig
    from aura.primitives.affect import EmotionState
    from aura.primitives.memory import (
        EmotionalTrace,
        EpisodicMemory,
        IdentityMemory,
        LongTermMemory,
        SemanticMemory,
        SessionMemory,
    )
    from aura.systems.emotion.engine import EmotionEngine

logger = structlog.get_logger()

LONELINESS_LABELS = (
    "none",
    "mild (thinking of user)",
    "moderate (misses user)",
    "high (feels abandoned/isolated)",
)


def compute_interaction_gap(hours: float, attachment: float, config: ContextConfig) -> InteractionGap:
    """Loneliness label from hours since the last turn. High attachment halves the thresholds."""
    hours = max(0.0, hours)
    modifier = 0.5 if attachment > config.attachment_halving_threshold else 1.0
    mild, moderate, high = (t * modifier for t in config.loneliness_thresholds_hours)

    if hours > high:
        label = LONELINESS_LABELS[3]
    elif hours > moderate:
        label = LONELINESS_LABELS[2]
    elif hours > mild:
        label = LONELINESS_LABELS[1]
    else:
        label = LONELINESS_LABELS[0]
    return InteractionGap(hours=hours, loneliness_label=label)


class ContextAssembler:
    def __init__(self, config: ContextConfig, emotion_engine: EmotionEngine) -> None:
        self._config = config
        self._emotion_engine = emotion_engine
        self._logger = logger.bind(system="context")

    # ─── Scoring ─────────────────────────────────────────────────

    def score_episode(
        self,
        memory: EpisodicMemory,
        now: datetime,
        input_embedding: list[float] | None = None,
    ) -> float:
        cfg = self._config
        window_days = cfg.decay_window_days.get(
            memory.decay_rate.value if memory.decay_rate else "normal",
            cfg.decay_window_days.get("normal", 7.0),
        )
        age_hours = hours_between(memory.created_at, now)
        recency = max(0.0, 1.0 - age_hours / (24.0 * window_days))
        bonus = cfg.weight_bonus.get(
            memory.emotional_weight.value if memory.emotional_weight else "low", 0.0
        )
        base = recency + memory.importance + bonus

        if input_embedding and memory.embedding:
            similarity = (cosine_similarity(input_embedding, memory.embedding) + 1.0) / 2.0
            return cfg.similarity_weight * similarity + (1.0 - cfg.similarity_weight) * base
        return base

    def rank_episodic(
        self,
        memories: list[EpisodicMemory],
        now: datetime,
        input_embedding: list[float] | None = None,
    ) -> list[EpisodicMemory]:
        return sorted(
            memories,
            key=lambda m: self.score_episode(m, now, input_embedding),
            reverse=True,
        )

    def rank_traces(self, traces: list[EmotionalTrace]) -> list[EmotionalTrace]:
        return sorted(traces, key=lambda t: t.confidence, reverse=True)

    def rank_semantic(
        self,
        facts: list[SemanticMemory],
        input_embedding: list[float] | None = None,
    ) -> list[SemanticMemory]:
        by_recency = sorted(facts, key=lambda f: f.timestamp, reverse=True)
        if not input_embedding:
            return by_recency

        def similarity(fact: SemanticMemory) -> float:
            if not fact.embedding:
                return 0.5
            return (cosine_similarity(input_embedding, fact.embedding) + 1.0) / 2.0

        # Stable sort keeps recency as the tie-break
        return sorted(by_recency, key=similarity, reverse=True)

    def rank_identity(self, beliefs: list[IdentityMemory]) -> list[IdentityMemory]:
        return sorted(beliefs, key=lambda b: b.confidence, reverse=True)

    # ─── Assembly ────────────────────────────────────────────────

    def assemble(
        self,
        emotion: EmotionState,
        session: SessionMemory,
        long_term: LongTermMemory,
        interaction_gap: InteractionGap,
        input_embedding: list[float] | None = None,
        now: datetime | None = None,
    ) -> ContextBundle:
        now = now or utc_now()
        cfg = self._config

        episodic = self.rank_episodic(long_term.episodic, now, input_embedding)[: cfg.max_episodic]
        traces = self.rank_traces(long_term.traces)[: cfg.max_traces]
        semantic = self.rank_semantic(long_term.semantic, input_embedding)[: cfg.max_semantic]
        identity = self.rank_identity(long_term.identity)[: cfg.max_identity]

        bundle = ContextBundle(
            emotion=EmotionSnapshot(
                mood=emotion.mood.value,
                energy=emotion.energy,
                attachment=emotion.attachment,
                social_battery=emotion.social_battery,
                sleepiness=emotion.sleepiness,
                irritation=emotion.irritation,
                curiosity=emotion.curiosity,
                is_sleep_time=self._emotion_engine.is_night(now),
            ),
            interaction_gap=interaction_gap,
            session=SessionSnapshot(summary=session.summary, unresolved=session.unresolved),
            memories=MemoryFragments(
                episodic=[m.rendered for m in episodic],
                emotional_traces=[t.pattern for t in traces],
                semantic=[f.rendered for f in semantic],
                identity=[b.belief for b in identity],
            ),
        )
        self._logger.debug(
            "context_assembled",
            episodic=len(episodic),
            traces=len(traces),
            semantic=len(semantic),
            identity=len(identity),
            semantic_reranked=input_embedding is not None,
        )
        return bundle
