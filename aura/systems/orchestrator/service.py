"""
Aura — Orchestrator

The turn pipeline. ``handle_turn`` is the only public turn surface and
runs every stage exactly once, in order:

  credentials → identity early-exit → persist input → load emotion →
  interaction gap → classify → update + persist emotion → session memory →
  promotion → (long-term fetch ∥ input embedding) → assemble context →
  generate → strip self-state → short-term buffer → persist reply →
  extraction (best-effort) → self-state (best-effort) → surface monologues

Critical writes (transcript, emotion state) propagate and fail the turn.
Best-effort work (extraction, self-state, surfaced marks, embedding
backfill) is logged and never fails it.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Any, Coroutine

import structlog

from aura.clients.embedding import safe_embed
from aura.primitives.common import hours_between, utc_now
from aura.primitives.conversation import ChatMessage, Role
from aura.systems.context.assembler import ContextAssembler, compute_interaction_gap
from aura.systems.emotion.engine import EmotionEngine
from aura.systems.intent.classifier import IntentClassifier
from aura.systems.memory.extraction import (
    MemoryExtractor,
    backfill_episodic_embedding,
    backfill_semantic_embedding,
)
from aura.systems.memory.promotion import MemoryPromotionEngine
from aura.systems.memory.retrieval import fetch_long_term_memory
from aura.systems.memory.session import update_session_memory
from aura.systems.orchestrator.conversation import Conversation, ConversationRegistry
from aura.systems.orchestrator.response import ResponseGenerator
from aura.systems.reflection.monologue import MonologueService
from aura.systems.reflection.self_model import SelfModelService, is_self_identity_statement

if TYPE_CHECKING:
    from aura.clients.embedding import EmbeddingClient
    from aura.clients.llm import LLMProvider
    from aura.config import AuraConfig
    from aura.primitives.reflection import MonologueEntry, SelfState
    from aura.storage.base import Storage

logger = structlog.get_logger()


class Orchestrator:
    def __init__(
        self,
        config: AuraConfig,
        llm: LLMProvider,
        storage: Storage,
        embedder: EmbeddingClient | None = None,
    ) -> None:
        self._config = config
        self._llm = llm
        self._storage = storage
        self._embedder = embedder

        self._classifier = IntentClassifier(llm, config.intent)
        self._emotion = EmotionEngine(config.emotion)
        self._promotion = MemoryPromotionEngine(storage, config.memory)
        self._assembler = ContextAssembler(config.context, self._emotion)
        self._responder = ResponseGenerator(llm, config.reflection)
        self._extractor = MemoryExtractor(llm, storage)
        self._self_model = SelfModelService(llm, storage)
        self._monologue = MonologueService(llm, storage, config.reflection)
        self._conversations = ConversationRegistry(config.session)

        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._background_task_failures = 0
        self._logger = logger.bind(system="orchestrator")

    @property
    def conversations(self) -> ConversationRegistry:
        return self._conversations

    @property
    def monologue(self) -> MonologueService:
        return self._monologue

    # ─── Public surface ──────────────────────────────────────────

    async def handle_turn(
        self,
        user_text: str,
        conversation_id: str = "default",
        now: datetime | None = None,
    ) -> str:
        """Run one turn and return the visible reply."""
        # Raises ProviderConfigurationError before anything is written
        self._llm.check_credentials()

        conversation = self._conversations.get(conversation_id)
        async with conversation.lock:
            now = now or utc_now()
            if conversation.session_expired(now, self._config.session.idle_timeout_hours):
                self._logger.info(
                    "session_expired",
                    conversation_id=conversation.id,
                    idle_hours=round(hours_between(conversation.last_turn_at or now, now), 2),
                )
                conversation.reset_session()

            if is_self_identity_statement(user_text):
                reply = await self._handle_identity_statement(conversation, user_text)
            else:
                reply = await self._run_pipeline(conversation, user_text, now)
            conversation.last_turn_at = now
            return reply

    async def end_session(self, conversation_id: str = "default") -> None:
        """Explicit session close. The next turn starts a fresh session memory."""
        if conversation_id not in self._conversations:
            return
        conversation = self._conversations.get(conversation_id)
        async with conversation.lock:
            conversation.reset_session()
        self._logger.info("session_ended", conversation_id=conversation_id)

    async def run_heartbeat(self) -> MonologueEntry | None:
        return await self._monologue.run_heartbeat()

    async def drain_background(self) -> None:
        """Wait for in-flight fire-and-forget work (embedding backfill)."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        await self.drain_background()
        await self._llm.close()
        if self._embedder is not None:
            await self._embedder.close()
        await self._storage.close()
        self._logger.info(
            "orchestrator_shutdown",
            conversations=len(self._conversations),
            background_task_failures=self._background_task_failures,
        )

    # ─── Pipeline ────────────────────────────────────────────────

    async def _handle_identity_statement(self, conversation: Conversation, user_text: str) -> str:
        self._logger.info("self_identity_statement_detected", conversation_id=conversation.id)
        await self._persist(conversation, Role.USER, user_text)
        acknowledgement = await self._self_model.process(user_text)
        await self._persist(conversation, Role.ASSISTANT, acknowledgement)
        conversation.remember(Role.USER, user_text)
        conversation.remember(Role.ASSISTANT, acknowledgement)
        return acknowledgement

    async def _run_pipeline(self, conversation: Conversation, user_text: str, now: datetime) -> str:
        cfg = self._config

        restored: list[ChatMessage] = []
        if conversation.is_first_turn:
            restored = await self._restore_history(conversation)
            conversation.is_first_turn = False

        # 1. Persist raw input
        await self._persist(conversation, Role.USER, user_text)

        # 2. Emotion state and interaction gap, measured before the update
        settings = await self._storage.get_settings()
        previous_emotion = await self._storage.get_emotion_state()
        gap = compute_interaction_gap(
            hours_between(previous_emotion.last_updated, now),
            previous_emotion.attachment,
            cfg.context,
        )

        # 3. Intent
        intent = await self._classifier.classify(user_text)

        # 4. Emotion update
        emotion = self._emotion.update(
            previous_emotion,
            intent,
            traits=settings.companion_personality.traits,
            now=now,
        )
        await self._storage.save_emotion_state(emotion)

        # 5. Session memory
        session = update_session_memory(conversation.session, intent, emotion)

        # 6. Promotion
        promotion = await self._promotion.promote(session, now=now)
        if promotion.episodic is not None:
            self._spawn_tracked_task(
                backfill_episodic_embedding(self._storage, self._embedder, promotion.episodic),
                name="backfill:episodic",
            )
        conversation.session = session

        # 7. Long-term memory and input embedding, concurrently
        long_term, input_embedding = await asyncio.gather(
            fetch_long_term_memory(self._storage, cfg.memory),
            safe_embed(self._embedder, user_text),
        )

        # 8. Context
        context = self._assembler.assemble(
            emotion,
            session,
            long_term,
            gap,
            input_embedding=input_embedding,
            now=now,
        )

        previous_self_state = await self._storage.latest_self_state()
        monologues = await self._monologue.get_unsurfaced()

        # 9. Reply
        parsed = await self._responder.generate(
            user_text,
            intent,
            context,
            settings,
            previous_self_state=previous_self_state,
            monologues=[m.content for m in monologues] or None,
            restored_history=restored or None,
            stm=conversation.recent_turns() or None,
        )
        reply = parsed.visible

        # 10. Short-term buffer and transcript
        conversation.remember(Role.USER, user_text)
        conversation.remember(Role.ASSISTANT, reply)
        await self._persist(conversation, Role.ASSISTANT, reply)

        # 11. Best-effort tail
        await self._extract_memories(user_text, session.summary)
        await self._store_self_state(parsed.self_state)
        await self._monologue.mark_surfaced(monologues)

        self._logger.info(
            "turn_complete",
            conversation_id=conversation.id,
            intent=intent.primary.value,
            intent_source=intent.source.value,
            mood=emotion.mood.value,
            significance=round(session.significance, 2),
            episodic_promoted=promotion.episodic is not None,
            trace_promoted=promotion.trace is not None,
            self_state=parsed.self_state is not None,
            monologues_surfaced=len(monologues),
        )
        return reply

    # ─── Helpers ─────────────────────────────────────────────────

    async def _persist(self, conversation: Conversation, role: Role, content: str) -> None:
        await self._storage.append_message(
            ChatMessage(role=role, content=content, conversation_id=conversation.id)
        )

    async def _restore_history(self, conversation: Conversation) -> list[ChatMessage]:
        try:
            history = await self._storage.recent_messages(
                self._config.session.restore_history_messages,
                conversation_id=conversation.id,
            )
        except Exception as exc:
            self._logger.warning("context_restore_failed", error=str(exc))
            return []
        if history:
            self._logger.info("context_restored", conversation_id=conversation.id, messages=len(history))
        return history

    async def _extract_memories(self, user_text: str, summary: str) -> None:
        if not self._config.memory.extraction_enabled:
            return
        try:
            extracted = await self._extractor.extract(user_text, summary)
        except Exception as exc:
            self._logger.warning("extraction_failed", error=str(exc))
            return
        for fact in extracted.semantic:
            self._spawn_tracked_task(
                backfill_semantic_embedding(self._storage, self._embedder, fact),
                name=f"backfill:semantic:{fact.key}",
            )

    async def _store_self_state(self, state: SelfState | None) -> None:
        if state is None:
            self._logger.debug("self_state_absent")
            return
        try:
            await self._storage.create_self_state(state)
        except Exception as exc:
            self._logger.warning("self_state_store_failed", error=str(exc))

    def _spawn_tracked_task(self, coro: Coroutine[Any, Any, Any], name: str = "") -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(self._on_background_task_done)
        return task

    def _on_background_task_done(self, task: asyncio.Task[Any]) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._background_task_failures += 1
            self._logger.warning(
                "background_task_failed",
                task_name=task.get_name(),
                error=str(exc),
            )
