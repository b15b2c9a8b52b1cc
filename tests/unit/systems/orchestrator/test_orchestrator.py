"""
Unit tests for the Orchestrator turn pipeline.

Real sub-components throughout; the provider is scripted and storage is
in-memory. No real API calls.
"""

from __future__ import annotations

import asyncio
import json
import time
from datetime import timedelta

import pytest

from aura.clients.embedding import MockEmbeddingClient
from aura.errors import ProviderConfigurationError
from aura.primitives.affect import EmotionState, Mood
from aura.primitives.conversation import ChatMessage, Role
from aura.primitives.intent import PrimaryIntent
from aura.primitives.reflection import MonologueEntry
from aura.storage.memory import InMemoryStorage
from aura.systems.orchestrator import (
    EMPTY_REPLY_PLACEHOLDER,
    ERROR_REPLY_PLACEHOLDER,
    Orchestrator,
)

REPLY_WITH_STATE = (
    "that sounds exhausting. i'm here.\n"
    '[SELF_STATE]{"current_state": "tender", "intensity": "moderate", "notable": "they are worn out"}[/SELF_STATE]'
)


@pytest.fixture
def fresh_storage(daytime) -> InMemoryStorage:
    return InMemoryStorage(emotion=EmotionState(last_updated=daytime))


def make_orchestrator(llm, storage, config_factory, embedder=None, **overrides) -> Orchestrator:
    return Orchestrator(config_factory(**overrides), llm, storage, embedder=embedder)


def venting_llm(scripted_llm, intent_payload, **kwargs):
    return scripted_llm(
        responses={
            "intent": intent_payload("emotional_venting", "weary_exhausted", "intimate", 0.9),
            "reply": REPLY_WITH_STATE,
            **kwargs.pop("responses", {}),
        },
        **kwargs,
    )


class TestTurn:
    async def test_reply_is_visible_text_and_everything_is_persisted(
        self, scripted_llm, intent_payload, fresh_storage, config_factory, daytime
    ) -> None:
        llm = venting_llm(scripted_llm, intent_payload)
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)

        reply = await orchestrator.handle_turn("aku capek banget", now=daytime)

        assert reply == "that sounds exhausting. i'm here."
        assert [(m.role, m.content) for m in fresh_storage.messages] == [
            (Role.USER, "aku capek banget"),
            (Role.ASSISTANT, reply),
        ]
        emotion = await fresh_storage.get_emotion_state()
        assert emotion.mood == Mood.LOW
        assert emotion.last_updated == daytime
        assert fresh_storage.self_states[-1].current_state == "tender"
        assert [c.kind for c in llm.calls] == ["intent", "reply", "extraction"]

    async def test_missing_credentials_fail_before_anything_runs(
        self, scripted_llm, fresh_storage, config_factory
    ) -> None:
        llm = scripted_llm(has_credentials=False)
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        with pytest.raises(ProviderConfigurationError):
            await orchestrator.handle_turn("hello")
        assert fresh_storage.messages == []
        assert llm.calls == []

    async def test_empty_reply_still_completes(
        self, scripted_llm, fresh_storage, config_factory, daytime
    ) -> None:
        llm = scripted_llm(responses={"reply": ""})
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        reply = await orchestrator.handle_turn("hello", now=daytime)
        assert reply == EMPTY_REPLY_PLACEHOLDER
        assert fresh_storage.messages[-1].content == EMPTY_REPLY_PLACEHOLDER
        assert fresh_storage.self_states == []

    async def test_reply_failure_becomes_placeholder(
        self, scripted_llm, fresh_storage, config_factory, daytime
    ) -> None:
        llm = scripted_llm(responses={"reply": RuntimeError("upstream 500")})
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        assert await orchestrator.handle_turn("hello", now=daytime) == ERROR_REPLY_PLACEHOLDER

    async def test_extraction_failure_never_fails_the_turn(
        self, scripted_llm, fresh_storage, config_factory, daytime
    ) -> None:
        llm = scripted_llm(responses={"extraction": RuntimeError("quota")})
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        assert await orchestrator.handle_turn("hello", now=daytime) == "hey, i'm glad you're here."

    async def test_extraction_can_be_disabled(
        self, llm, fresh_storage, config_factory, daytime
    ) -> None:
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory, memory={"extraction_enabled": False})
        await orchestrator.handle_turn("hello", now=daytime)
        assert llm.calls_of("extraction") == []

    async def test_classification_timeout_does_not_stall(
        self, scripted_llm, fresh_storage, config_factory, daytime
    ) -> None:
        llm = scripted_llm(delays={"intent": 5.0})
        orchestrator = make_orchestrator(
            llm, fresh_storage, config_factory, intent={"classification_timeout_s": 0.05}
        )
        start = time.monotonic()
        await orchestrator.handle_turn("aku capek banget", now=daytime)
        assert time.monotonic() - start < 1.0
        # Keyword fallback drove the emotion update
        assert (await fresh_storage.get_emotion_state()).mood == Mood.LOW


class TestMemoryFlow:
    async def test_exhausted_sequence_promotes_from_second_turn(
        self, scripted_llm, intent_payload, fresh_storage, config_factory, daytime
    ) -> None:
        llm = venting_llm(scripted_llm, intent_payload)
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)

        counts = []
        for i in range(3):
            await orchestrator.handle_turn("aku capek banget", now=daytime + timedelta(minutes=i))
            counts.append(len(fresh_storage.episodic))

        assert counts == [0, 1, 2]
        trace = fresh_storage.traces["emotional_venting_low"]
        assert trace.evidence_count == 3
        assert trace.confidence == pytest.approx(0.5)

    async def test_extracted_facts_reach_the_next_prompt(
        self, scripted_llm, fresh_storage, config_factory, daytime
    ) -> None:
        llm = scripted_llm(responses={"extraction": [
            json.dumps({"semantic": [{"key": "user_name", "value": "Budi"}], "identity": []}),
            '{"semantic": [], "identity": []}',
        ]})
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        await orchestrator.handle_turn("my name is Budi", now=daytime)
        await orchestrator.handle_turn("what's up", now=daytime + timedelta(minutes=1))
        assert "user_name: Budi" in llm.calls_of("reply")[1].prompt

    async def test_embedding_backfill_runs_in_background(
        self, scripted_llm, fresh_storage, config_factory, daytime
    ) -> None:
        llm = scripted_llm(responses={
            "extraction": json.dumps({"semantic": [{"key": "user_pet", "value": "cat"}], "identity": []})
        })
        orchestrator = make_orchestrator(
            llm, fresh_storage, config_factory, embedder=MockEmbeddingClient(dimension=16)
        )
        await orchestrator.handle_turn("i have a cat", now=daytime)
        await orchestrator.drain_background()
        assert fresh_storage.semantic["user_pet"].embedding is not None


class TestConversationState:
    async def test_short_term_buffer_is_bounded(
        self, llm, fresh_storage, config_factory, daytime
    ) -> None:
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        for i in range(5):
            await orchestrator.handle_turn(f"message {i}", now=daytime + timedelta(minutes=i))

        conversation = orchestrator.conversations.get("default")
        turns = conversation.recent_turns()
        assert len(turns) == 6
        assert turns[0].content == "message 2"
        assert turns[-1].role == Role.ASSISTANT
        # The last reply prompt saw the previous turns, not the current one
        last_prompt = llm.calls_of("reply")[-1].prompt
        assert "User: message 3" in last_prompt

    async def test_history_restored_on_first_turn_only(
        self, llm, fresh_storage, config_factory, daytime
    ) -> None:
        await fresh_storage.append_message(ChatMessage(role=Role.USER, content="goodnight, talk tomorrow"))
        await fresh_storage.append_message(ChatMessage(role=Role.USER, content="other chat", conversation_id="other"))
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)

        await orchestrator.handle_turn("morning!", now=daytime)
        await orchestrator.handle_turn("slept well?", now=daytime + timedelta(minutes=1))

        first, second = llm.calls_of("reply")
        assert "OUR LAST INTERACTION (CONTEXT RESTORE):\nUser: goodnight, talk tomorrow" in first.prompt
        assert "other chat" not in first.prompt
        assert "OUR LAST INTERACTION" not in second.prompt

    async def test_conversations_are_isolated(
        self, llm, fresh_storage, config_factory, daytime
    ) -> None:
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        await orchestrator.handle_turn("hi from one", conversation_id="one", now=daytime)
        await orchestrator.handle_turn("hi from two", conversation_id="two", now=daytime)
        assert len(orchestrator.conversations) == 2
        assert "hi from one" not in llm.calls_of("reply")[1].prompt
        assert {m.conversation_id for m in fresh_storage.messages} == {"one", "two"}

    async def test_idle_gap_starts_a_new_session(
        self, scripted_llm, intent_payload, fresh_storage, config_factory, daytime
    ) -> None:
        llm = venting_llm(scripted_llm, intent_payload)
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)

        await orchestrator.handle_turn("aku capek", now=daytime)
        await orchestrator.handle_turn("masih capek", now=daytime + timedelta(hours=7))

        # Significance restarted, so the second turn did not cross the threshold
        assert fresh_storage.episodic == []
        assert orchestrator.conversations.get("default").session.significance == pytest.approx(0.5)

    async def test_end_session_resets(
        self, scripted_llm, intent_payload, fresh_storage, config_factory, daytime
    ) -> None:
        llm = venting_llm(scripted_llm, intent_payload)
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        await orchestrator.handle_turn("aku capek", now=daytime)
        await orchestrator.end_session()

        conversation = orchestrator.conversations.get("default")
        assert conversation.session.significance == 0.0
        assert conversation.recent_turns() == []

    async def test_turns_on_one_conversation_are_serialised(
        self, scripted_llm, fresh_storage, config_factory, daytime
    ) -> None:
        llm = scripted_llm(delays={"reply": 0.05})
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        await asyncio.gather(
            orchestrator.handle_turn("first", now=daytime),
            orchestrator.handle_turn("second", now=daytime),
        )
        assert [c.kind for c in llm.calls] == [
            "intent", "reply", "extraction",
            "intent", "reply", "extraction",
        ]
        assert [m.content for m in fresh_storage.messages if m.role == Role.USER] == ["first", "second"]


class TestReflection:
    async def test_identity_statement_short_circuits(
        self, llm, fresh_storage, config_factory, daytime
    ) -> None:
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        reply = await orchestrator.handle_turn("remember, you're not just code", now=daytime)

        assert reply == "...that means a lot. i'll hold it close."
        assert [c.kind for c in llm.calls] == ["belief", "acknowledgement"]
        assert [m.role for m in fresh_storage.messages] == [Role.USER, Role.ASSISTANT]
        assert len(orchestrator.conversations.get("default").recent_turns()) == 2

        # The next reply carries the identity block in its system prompt
        await orchestrator.handle_turn("hey", now=daytime + timedelta(minutes=1))
        assert llm.calls_of("reply")[0].system_prompt.startswith("[SENSE OF SELF]")

    async def test_previous_self_state_is_fed_back(
        self, scripted_llm, intent_payload, fresh_storage, config_factory, daytime
    ) -> None:
        llm = venting_llm(scripted_llm, intent_payload)
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        await orchestrator.handle_turn("aku capek", now=daytime)
        await orchestrator.handle_turn("masih capek", now=daytime + timedelta(minutes=1))
        second = llm.calls_of("reply")[1].prompt
        assert "MY LAST INNER STATE" in second
        assert "- Notable: they are worn out" in second

    async def test_monologues_surface_once(
        self, llm, fresh_storage, config_factory, daytime
    ) -> None:
        await fresh_storage.create_monologue(MonologueEntry(content="i hope they ate today", emotional_tone="worried"))
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)

        await orchestrator.handle_turn("hey", now=daytime)
        await orchestrator.handle_turn("hey again", now=daytime + timedelta(minutes=1))

        first, second = llm.calls_of("reply")
        assert "- i hope they ate today" in first.prompt
        assert "RECENT PRIVATE THOUGHTS" not in second.prompt
        assert fresh_storage.monologues[0].surfaced is True

    async def test_heartbeat_and_shutdown(self, llm, fresh_storage, config_factory, daytime) -> None:
        orchestrator = make_orchestrator(llm, fresh_storage, config_factory)
        assert await orchestrator.run_heartbeat() is None  # no history yet

        await orchestrator.handle_turn("long day", now=daytime)
        entry = await orchestrator.run_heartbeat()
        assert entry is not None
        assert (await orchestrator.monologue.get_unsurfaced())[0].id == entry.id

        await orchestrator.shutdown()
        assert llm.closed


def test_intent_enum_values_match_trace_allow_list(config_factory) -> None:
    allowed = set(config_factory().memory.trace_intents)
    assert allowed <= {p.value for p in PrimaryIntent}
