"""
Aura — Intent Classifier

Maps an utterance to the three-axis interaction label. The semantic call
races a fixed timeout; on timeout, provider error or unusable output the
keyword fallback answers instead. Never raises.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

import structlog

from aura.clients.llm import GenerateOptions
from aura.clients.output import parse_json_object
from aura.errors import MalformedOutputError
from aura.primitives.common import clamp
from aura.primitives.intent import (
    EmotionTag,
    IntentResult,
    IntentSource,
    PrimaryIntent,
    SocialDynamic,
)
from aura.prompts.intent import build_intent_prompt
from aura.systems.intent.keywords import classify_by_keywords

if TYPE_CHECKING:
    from aura.clients.llm import LLMProvider
    from aura.config import IntentConfig

logger = structlog.get_logger()


def parse_classification(raw: str) -> IntentResult:
    """
    Parse the model's classification JSON.

    Unknown labels and non-numeric confidence are malformed output.
    """
    data = parse_json_object(raw)
    try:
        primary = PrimaryIntent(data["primary_intent"])
        emotion = EmotionTag(data["emotional_spectrum"])
        dynamic = SocialDynamic(data["social_dynamic"])
        confidence = float(data.get("confidence", 0.5))
    except (KeyError, ValueError, TypeError) as exc:
        raise MalformedOutputError(f"unusable classification: {exc}") from exc

    return IntentResult(
        primary=primary,
        emotion=emotion,
        dynamic=dynamic,
        confidence=clamp(confidence),
        source=IntentSource.MODEL,
    )


class IntentClassifier:
    def __init__(self, llm: LLMProvider, config: IntentConfig) -> None:
        self._llm = llm
        self._config = config
        self._logger = logger.bind(system="intent")

    async def classify(self, text: str) -> IntentResult:
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                self._classify_with_model(text),
                timeout=self._config.classification_timeout_s,
            )
        except asyncio.TimeoutError:
            self._reason_for_fallback("timeout", start)
            return classify_by_keywords(text)
        except MalformedOutputError as exc:
            self._reason_for_fallback("malformed_output", start, error=str(exc))
            return classify_by_keywords(text)
        except Exception as exc:
            self._reason_for_fallback("provider_error", start, error=str(exc))
            return classify_by_keywords(text)

        self._logger.debug(
            "intent_classified",
            primary=result.primary.value,
            emotion=result.emotion.value,
            dynamic=result.dynamic.value,
            confidence=result.confidence,
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        return result

    async def _classify_with_model(self, text: str) -> IntentResult:
        raw = await self._llm.generate_text(
            build_intent_prompt(text),
            GenerateOptions(
                temperature=self._config.temperature,
                max_tokens=200,
                json_mode=True,
            ),
        )
        return parse_classification(raw)

    def _reason_for_fallback(self, reason: str, start: float, **fields: Any) -> None:
        self._logger.warning(
            "intent_fallback_triggered",
            reason=reason,
            elapsed_ms=int((time.monotonic() - start) * 1000),
            **fields,
        )
