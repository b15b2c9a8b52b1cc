"""
Aura — Response Generator

The only caller of reply generation. Failures never escape: an empty
reply or a provider error becomes a fixed in-character placeholder and
the turn still completes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from aura.clients.llm import GenerateOptions
from aura.errors import GenerationError
from aura.prompts.response import build_response_prompt, build_response_system_prompt
from aura.systems.reflection.self_state import ParsedReply, parse_self_state

if TYPE_CHECKING:
    from aura.clients.llm import LLMProvider
    from aura.config import ReflectionConfig
    from aura.primitives.conversation import ChatMessage, CompanionSettings, STMTurn
    from aura.primitives.intent import IntentResult
    from aura.primitives.reflection import SelfState
    from aura.systems.context.types import ContextBundle

logger = structlog.get_logger()

EMPTY_REPLY_PLACEHOLDER = "…i'm here. even if words feel hard right now."
ERROR_REPLY_PLACEHOLDER = "…something feels off in my head right now, but i'm still here with you."

REPLY_TEMPERATURE = 0.7
REPLY_MAX_TOKENS = 4096


class ResponseGenerator:
    def __init__(self, llm: LLMProvider, config: ReflectionConfig) -> None:
        self._llm = llm
        self._config = config
        self._logger = logger.bind(system="orchestrator.response")

    @property
    def structured(self) -> bool:
        """JSON envelope when enabled and the provider has JSON mode."""
        return self._config.self_state_mode == "auto" and self._llm.capabilities.json_mode

    async def generate(
        self,
        text: str,
        intent: IntentResult,
        context: ContextBundle,
        settings: CompanionSettings,
        previous_self_state: SelfState | None = None,
        monologues: list[str] | None = None,
        restored_history: list[ChatMessage] | None = None,
        stm: list[STMTurn] | None = None,
    ) -> ParsedReply:
        structured = self.structured
        prompt = build_response_prompt(
            text,
            intent,
            context,
            settings,
            previous_self_state=previous_self_state,
            monologues=monologues,
            restored_history=restored_history,
            stm=stm,
        )
        options = GenerateOptions(
            system_prompt=build_response_system_prompt(settings, structured=structured),
            temperature=REPLY_TEMPERATURE,
            max_tokens=REPLY_MAX_TOKENS,
            json_mode=structured,
        )

        try:
            raw = await self._llm.generate_text(prompt, options)
            if not raw or not raw.strip():
                raise GenerationError("empty reply")
        except GenerationError:
            self._logger.warning("reply_empty")
            return ParsedReply(visible=EMPTY_REPLY_PLACEHOLDER)
        except Exception as exc:
            self._logger.error("reply_generation_failed", error=str(exc))
            return ParsedReply(visible=ERROR_REPLY_PLACEHOLDER)

        parsed = parse_self_state(raw, structured=structured)
        if not parsed.visible:
            # Nothing left after the self-state was stripped
            parsed.visible = EMPTY_REPLY_PLACEHOLDER
        return parsed
