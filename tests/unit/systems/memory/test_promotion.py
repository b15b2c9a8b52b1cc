"""Unit tests for MemoryPromotionEngine."""

from __future__ import annotations

import pytest

from aura.config import MemoryConfig
from aura.primitives.affect import EmotionState, Mood
from aura.primitives.intent import EmotionTag, IntentResult, PrimaryIntent, SocialDynamic
from aura.primitives.memory import DecayRate, EmotionalTrace, EmotionalWeight, SessionMemory
from aura.storage.memory import InMemoryStorage
from aura.systems.memory.promotion import (
    FALLBACK_SUMMARY,
    MemoryPromotionEngine,
    qualifies_for_episodic,
    qualifies_for_trace,
)
from aura.systems.memory.session import update_session_memory


@pytest.fixture
def promotion(storage: InMemoryStorage) -> MemoryPromotionEngine:
    return MemoryPromotionEngine(storage, MemoryConfig())


def venting_session(significance: float, **kwargs) -> SessionMemory:
    defaults = dict(
        summary="User feels exhausted and is venting.",
        dominant_intent="emotional_venting",
        dominant_emotion="low",
        unresolved=True,
        significance=significance,
    )
    defaults.update(kwargs)
    return SessionMemory(**defaults)


class TestEpisodicRule:
    @pytest.mark.parametrize(
        ("significance", "emotion", "expected"),
        [
            (0.69, "low", False),
            (0.7, "low", True),
            (0.9, "positive", True),
            (0.95, "neutral", False),
            (1.0, "curious_engaged", True),
        ],
    )
    def test_threshold_and_allow_list(self, significance: float, emotion: str, expected: bool) -> None:
        session = SessionMemory(significance=significance, dominant_emotion=emotion)
        assert qualifies_for_episodic(session, MemoryConfig()) is expected

    async def test_every_qualifying_turn_records(
        self, promotion: MemoryPromotionEngine, storage: InMemoryStorage
    ) -> None:
        session = SessionMemory(significance=1.0, dominant_emotion="low")
        await promotion.promote(session)
        await promotion.promote(session)
        assert len(storage.episodic) == 2

    async def test_heavy_moment_is_high_weight_slow_decay(
        self, promotion: MemoryPromotionEngine, storage: InMemoryStorage
    ) -> None:
        result = await promotion.promote(venting_session(0.95))
        assert result.episodic is not None
        assert result.episodic.emotional_weight == EmotionalWeight.HIGH
        assert result.episodic.decay_rate == DecayRate.SLOW
        assert result.episodic.importance == pytest.approx(0.95)
        assert storage.episodic == [result.episodic]

    async def test_moderate_moment_is_medium_weight(self, promotion: MemoryPromotionEngine) -> None:
        result = await promotion.promote(venting_session(0.75))
        assert result.episodic is not None
        assert result.episodic.emotional_weight == EmotionalWeight.MEDIUM
        assert result.episodic.decay_rate == DecayRate.NORMAL

    async def test_empty_summary_falls_back(self, promotion: MemoryPromotionEngine) -> None:
        result = await promotion.promote(venting_session(0.8, summary=""))
        assert result.episodic is not None
        assert result.episodic.summary == FALLBACK_SUMMARY

    async def test_nothing_fires_on_calm_turn(
        self, promotion: MemoryPromotionEngine, storage: InMemoryStorage
    ) -> None:
        session = SessionMemory(significance=0.1, dominant_intent="casual_chat", dominant_emotion="positive")
        result = await promotion.promote(session)
        assert not result.promoted
        assert storage.episodic == []
        assert storage.traces == {}


class TestTraceRule:
    def test_requires_allowed_intent(self) -> None:
        assert qualifies_for_trace(venting_session(0.1), MemoryConfig())
        assert qualifies_for_trace(venting_session(0.1, dominant_intent="support_seeking"), MemoryConfig())
        assert not qualifies_for_trace(venting_session(0.1, dominant_intent="task_planning"), MemoryConfig())

    def test_requires_unresolved_low(self) -> None:
        assert not qualifies_for_trace(venting_session(0.1, unresolved=False), MemoryConfig())
        assert not qualifies_for_trace(venting_session(0.1, dominant_emotion="neutral"), MemoryConfig())

    async def test_seed_then_strengthen(
        self, promotion: MemoryPromotionEngine, storage: InMemoryStorage
    ) -> None:
        first = await promotion.promote(venting_session(0.1))
        assert first.trace is not None
        assert first.trace.pattern == "emotional_venting_low"
        assert first.trace.confidence == pytest.approx(0.3)
        assert first.trace.evidence_count == 1

        second = await promotion.promote(venting_session(0.1))
        assert second.trace is not None
        assert second.trace.confidence == pytest.approx(0.4)
        assert second.trace.evidence_count == 2
        assert len(storage.traces) == 1

    async def test_confidence_caps_at_one(
        self, promotion: MemoryPromotionEngine, storage: InMemoryStorage
    ) -> None:
        await storage.upsert_trace(
            EmotionalTrace(pattern="emotional_venting_low", confidence=0.95, evidence_count=7)
        )
        result = await promotion.promote(venting_session(0.1))
        assert result.trace is not None
        assert result.trace.confidence == 1.0
        assert result.trace.evidence_count == 8

        again = await promotion.promote(venting_session(0.1))
        assert again.trace is not None
        assert again.trace.confidence == 1.0


class TestExhaustedSequence:
    async def test_three_exhausted_turns_record_from_turn_two(
        self, promotion: MemoryPromotionEngine, storage: InMemoryStorage
    ) -> None:
        intent = IntentResult(
            primary=PrimaryIntent.EMOTIONAL_VENTING,
            emotion=EmotionTag.WEARY_EXHAUSTED,
            dynamic=SocialDynamic.INTIMATE,
        )
        emotion = EmotionState(mood=Mood.LOW)
        session = SessionMemory()
        episodes_after_turn: list[int] = []
        new_records: list[bool] = []

        for _ in range(3):
            session = update_session_memory(session, intent, emotion)
            result = await promotion.promote(session)
            new_records.append(result.episodic is not None)
            episodes_after_turn.append(len(storage.episodic))

        assert episodes_after_turn == [0, 1, 2]
        assert new_records == [False, True, True]
        trace = storage.traces["emotional_venting_low"]
        assert trace.evidence_count == 3
        assert trace.confidence == pytest.approx(0.5)
