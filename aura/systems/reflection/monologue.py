"""
Aura — Monologue Service

Private reflection between conversations. Runs on the heartbeat, never on
the turn path, and reloads everything it needs from storage. One cycle
stores at most one unsurfaced entry; no history or malformed output means
nothing is stored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from aura.clients.llm import GenerateOptions
from aura.clients.output import parse_json_object
from aura.errors import MalformedOutputError
from aura.primitives.reflection import MonologueDraft, MonologueEntry
from aura.prompts.monologue import build_monologue_prompt

if TYPE_CHECKING:
    from aura.clients.llm import LLMProvider
    from aura.config import ReflectionConfig
    from aura.storage.base import Storage

logger = structlog.get_logger()

EPISODIC_CONTEXT_LIMIT = 3


def parse_monologue(raw: str) -> MonologueDraft:
    data = parse_json_object(raw)
    content = data.get("content")
    tone = data.get("emotional_tone")
    if not isinstance(content, str) or not content.strip():
        raise MalformedOutputError("monologue content missing")
    if not isinstance(tone, str) or not tone.strip():
        raise MalformedOutputError("monologue emotional_tone missing")
    return MonologueDraft(content=content.strip(), emotional_tone=tone.strip())


class MonologueService:
    def __init__(self, llm: LLMProvider, storage: Storage, config: ReflectionConfig) -> None:
        self._llm = llm
        self._storage = storage
        self._config = config
        self._logger = logger.bind(system="reflection.monologue")

    async def generate(self) -> MonologueDraft | None:
        history = await self._storage.recent_messages(self._config.monologue_history_messages)
        if not history:
            self._logger.info("monologue_skipped", reason="no_history")
            return None

        settings = await self._storage.get_settings()
        prompt = build_monologue_prompt(
            companion_name=settings.companion_personality.name,
            history=history,
            last_self_state=await self._storage.latest_self_state(),
            episodic=await self._storage.recent_episodic(EPISODIC_CONTEXT_LIMIT),
            facts=await self._storage.list_semantic(),
            previous=await self._storage.unsurfaced_monologues(self._config.monologue_limit),
        )

        try:
            raw = await self._llm.generate_text(
                prompt,
                GenerateOptions(temperature=0.8, max_tokens=400, json_mode=True),
            )
            return parse_monologue(raw)
        except MalformedOutputError as exc:
            self._logger.warning("monologue_malformed", error=str(exc))
        except Exception as exc:
            self._logger.warning("monologue_generation_failed", error=str(exc))
        return None

    async def run_heartbeat(self, triggered_by: str = "heartbeat") -> MonologueEntry | None:
        """One full cycle: generate and store."""
        draft = await self.generate()
        if draft is None:
            self._logger.debug("monologue_none_this_cycle")
            return None

        entry = MonologueEntry(
            content=draft.content,
            emotional_tone=draft.emotional_tone,
            triggered_by=triggered_by,
        )
        await self._storage.create_monologue(entry)
        self._logger.info(
            "monologue_stored",
            preview=entry.content[:80],
            tone=entry.emotional_tone,
        )
        return entry

    async def get_unsurfaced(self) -> list[MonologueEntry]:
        return await self._storage.unsurfaced_monologues(self._config.monologue_limit)

    async def mark_surfaced(self, entries: list[MonologueEntry]) -> None:
        """Best-effort: a failed mark is logged and the rest continue."""
        for entry in entries:
            try:
                await self._storage.mark_monologue_surfaced(entry.id)
            except Exception as exc:
                self._logger.warning("monologue_mark_failed", entry_id=entry.id, error=str(exc))
