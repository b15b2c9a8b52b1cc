"""Unit tests for ContextAssembler and the interaction gap."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from aura.config import ContextConfig, EmotionConfig
from aura.primitives.affect import EmotionState, Mood
from aura.primitives.memory import (
    DecayRate,
    EmotionalTrace,
    EmotionalWeight,
    EpisodicMemory,
    IdentityMemory,
    LongTermMemory,
    SemanticMemory,
    SessionMemory,
)
from aura.systems.context.assembler import (
    LONELINESS_LABELS,
    ContextAssembler,
    compute_interaction_gap,
)
from aura.systems.context.types import InteractionGap
from aura.systems.emotion.engine import EmotionEngine

NOW = datetime(2025, 3, 10, 7, 0, tzinfo=timezone.utc)


@pytest.fixture
def assembler() -> ContextAssembler:
    return ContextAssembler(ContextConfig(), EmotionEngine(EmotionConfig()))


def make_episode(
    decay_rate: DecayRate = DecayRate.NORMAL,
    age: timedelta = timedelta(0),
    importance: float = 0.5,
    weight: EmotionalWeight | None = EmotionalWeight.MEDIUM,
    **kwargs,
) -> EpisodicMemory:
    return EpisodicMemory(
        summary=kwargs.pop("summary", f"{decay_rate.value} moment"),
        emotion="low",
        importance=importance,
        emotional_weight=weight,
        decay_rate=decay_rate,
        created_at=NOW - age,
        **kwargs,
    )


class TestInteractionGap:
    @pytest.mark.parametrize(
        ("hours", "label"),
        [
            (0.5, LONELINESS_LABELS[0]),
            (2.0, LONELINESS_LABELS[0]),
            (3.0, LONELINESS_LABELS[1]),
            (10.0, LONELINESS_LABELS[2]),
            (30.0, LONELINESS_LABELS[3]),
        ],
    )
    def test_thresholds(self, hours: float, label: str) -> None:
        assert compute_interaction_gap(hours, 0.5, ContextConfig()).loneliness_label == label

    def test_high_attachment_halves_thresholds(self) -> None:
        config = ContextConfig()
        assert compute_interaction_gap(13.0, 0.5, config).loneliness_label == LONELINESS_LABELS[2]
        assert compute_interaction_gap(13.0, 0.8, config).loneliness_label == LONELINESS_LABELS[3]

    def test_negative_hours_clamp(self) -> None:
        gap = compute_interaction_gap(-4.0, 0.5, ContextConfig())
        assert gap.hours == 0.0
        assert gap.loneliness_label == "none"


class TestEpisodicRanking:
    def test_slower_decay_ranks_higher_beyond_normal_window(self, assembler: ContextAssembler) -> None:
        age = timedelta(days=10)
        fast = make_episode(DecayRate.FAST, age)
        normal = make_episode(DecayRate.NORMAL, age)
        slow = make_episode(DecayRate.SLOW, age)

        ranked = assembler.rank_episodic([fast, normal, slow], NOW)
        assert ranked[0] is slow
        assert assembler.score_episode(slow, NOW) > assembler.score_episode(normal, NOW)
        # Both shorter windows have fully elapsed
        assert assembler.score_episode(normal, NOW) == pytest.approx(assembler.score_episode(fast, NOW))

    def test_full_order_within_windows(self, assembler: ContextAssembler) -> None:
        age = timedelta(days=1)
        fast = make_episode(DecayRate.FAST, age)
        normal = make_episode(DecayRate.NORMAL, age)
        slow = make_episode(DecayRate.SLOW, age)
        ranked = assembler.rank_episodic([fast, normal, slow], NOW)
        assert [m.decay_rate for m in ranked] == [DecayRate.SLOW, DecayRate.NORMAL, DecayRate.FAST]

    def test_score_formula(self, assembler: ContextAssembler) -> None:
        # recency 1 - 24 / 168, importance 0.6, high bonus 0.4
        episode = make_episode(DecayRate.NORMAL, timedelta(hours=24), importance=0.6, weight=EmotionalWeight.HIGH)
        expected = (1 - 24 / 168) + 0.6 + 0.4
        assert assembler.score_episode(episode, NOW) == pytest.approx(expected)

    def test_similarity_blend(self, assembler: ContextAssembler) -> None:
        episode = make_episode(DecayRate.NORMAL, timedelta(0), importance=0.5, embedding=[1.0, 0.0])
        base = 1.0 + 0.5 + 0.2
        blended = assembler.score_episode(episode, NOW, input_embedding=[1.0, 0.0])
        assert blended == pytest.approx(0.6 * 1.0 + 0.4 * base)

    def test_blend_needs_both_vectors(self, assembler: ContextAssembler) -> None:
        episode = make_episode(DecayRate.NORMAL, timedelta(0))
        assert assembler.score_episode(episode, NOW, [1.0, 0.0]) == assembler.score_episode(episode, NOW)


class TestAssemble:
    def test_caps_and_rendering(self, assembler: ContextAssembler) -> None:
        episodes = [
            make_episode(DecayRate.NORMAL, timedelta(hours=i), summary=f"moment {i}") for i in range(6)
        ]
        episodes.append(make_episode(
            DecayRate.SLOW, timedelta(0), importance=1.0, weight=EmotionalWeight.HIGH,
            summary="the night they cried", narrative="i stayed with them until they slept.",
        ))
        traces = [
            EmotionalTrace(pattern="emotional_venting_low", confidence=0.4),
            EmotionalTrace(pattern="support_seeking_low", confidence=0.9),
            EmotionalTrace(pattern="deep_reflection_low", confidence=0.6),
        ]
        semantic = [SemanticMemory(key=f"fact_{i}", value=str(i)) for i in range(20)]
        identity = [IdentityMemory(belief=f"belief {i}", confidence=i / 10) for i in range(10)]

        bundle = assembler.assemble(
            EmotionState(mood=Mood.LOW, energy=0.3),
            SessionMemory(summary="User feels exhausted and is venting.", unresolved=True),
            LongTermMemory(episodic=episodes, traces=traces, semantic=semantic, identity=identity),
            InteractionGap(hours=3.0, loneliness_label=LONELINESS_LABELS[1]),
            now=NOW,
        )

        assert len(bundle.memories.episodic) == 3
        assert bundle.memories.episodic[0] == "i stayed with them until they slept."
        assert bundle.memories.emotional_traces == ["support_seeking_low", "deep_reflection_low"]
        assert len(bundle.memories.semantic) == 12
        assert all(": " in fact for fact in bundle.memories.semantic)
        assert len(bundle.memories.identity) == 8
        assert bundle.memories.identity[0] == "belief 9"
        assert bundle.emotion.mood == "low"
        assert bundle.emotion.is_sleep_time is False
        assert bundle.session.unresolved is True
        assert bundle.interaction_gap.loneliness_label == LONELINESS_LABELS[1]

    def test_semantic_prefers_similar_facts_when_embedded(self, assembler: ContextAssembler) -> None:
        near = SemanticMemory(key="user_pet", value="cat", embedding=[1.0, 0.0], timestamp=NOW - timedelta(days=3))
        far = SemanticMemory(key="user_job", value="nurse", embedding=[-1.0, 0.0], timestamp=NOW)
        unembedded = SemanticMemory(key="user_city", value="Bandung", timestamp=NOW - timedelta(days=1))

        ranked = assembler.rank_semantic([far, unembedded, near], input_embedding=[1.0, 0.0])
        assert [f.key for f in ranked] == ["user_pet", "user_city", "user_job"]

        by_recency = assembler.rank_semantic([far, unembedded, near])
        assert [f.key for f in by_recency] == ["user_job", "user_city", "user_pet"]

    def test_empty_long_term(self, assembler: ContextAssembler) -> None:
        bundle = assembler.assemble(EmotionState(), SessionMemory(), LongTermMemory(), InteractionGap(), now=NOW)
        assert bundle.memories.episodic == []
        assert bundle.memories.semantic == []
