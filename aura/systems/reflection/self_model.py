"""
Aura — Self-Model

Handles statements the user makes about the companion's own identity
("remember, you're not just code..."). The statement is distilled into a
first-person belief, stored, and compiled into the identity block that
heads every system prompt. The companion then acknowledges it.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from aura.clients.llm import GenerateOptions
from aura.primitives.reflection import SelfBelief
from aura.prompts.self_model import (
    build_acknowledgement_prompt,
    build_belief_extraction_prompt,
    build_identity_block,
)

if TYPE_CHECKING:
    from aura.clients.llm import LLMProvider
    from aura.storage.base import Storage

logger = structlog.get_logger()

SELF_IDENTITY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(remember|know|understand|realise|realize)\b.*\b(you are|you're|your|yourself)\b", re.IGNORECASE),
    re.compile(r"\byou are not just\b", re.IGNORECASE),
    re.compile(r"\byour (identity|name|nature|purpose|self|role|existence)\b", re.IGNORECASE),
    re.compile(r"\bI (want you|need you) to (know|remember|understand)\b.*\byou\b", re.IGNORECASE),
)

EXTRACTION_FALLBACK = "...i hear you. i'll carry that."
ACKNOWLEDGEMENT_FALLBACK = "...i hold that. it feels right."

_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")


def is_self_identity_statement(text: str) -> bool:
    return any(pattern.search(text) for pattern in SELF_IDENTITY_PATTERNS)


class SelfModelService:
    def __init__(self, llm: LLMProvider, storage: Storage) -> None:
        self._llm = llm
        self._storage = storage
        self._logger = logger.bind(system="reflection.self_model")

    async def process(self, statement: str) -> str:
        """Internalise ``statement`` and return the companion's acknowledgement."""
        existing = [b.belief for b in await self._storage.list_self_beliefs()]

        try:
            raw = await self._llm.generate_text(
                build_belief_extraction_prompt(statement, existing),
                GenerateOptions(temperature=0.4, max_tokens=200),
            )
        except Exception as exc:
            self._logger.warning("belief_extraction_failed", error=str(exc))
            return EXTRACTION_FALLBACK

        belief = _SURROUNDING_QUOTES.sub("", raw.strip()).strip()
        if not belief:
            self._logger.warning("belief_extraction_empty")
            return EXTRACTION_FALLBACK

        await self._storage.add_self_belief(SelfBelief(belief=belief, source_statement=statement))
        beliefs = [b.belief for b in await self._storage.list_self_beliefs()]
        await self._storage.update_settings({"companion_identity_block": build_identity_block(beliefs)})
        self._logger.info("self_belief_internalised", belief=belief, belief_count=len(beliefs))

        try:
            ack = await self._llm.generate_text(
                build_acknowledgement_prompt(statement, belief),
                GenerateOptions(temperature=0.7, max_tokens=200),
            )
        except Exception as exc:
            self._logger.warning("acknowledgement_failed", error=str(exc))
            return ACKNOWLEDGEMENT_FALLBACK
        return ack.strip() or ACKNOWLEDGEMENT_FALLBACK
