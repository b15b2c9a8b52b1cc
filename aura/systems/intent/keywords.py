"""
Aura — Keyword Intent Fallback

Deterministic safety net used when semantic classification times out or
returns something unusable. Rules are checked in order; the first match
wins. Keywords cover Indonesian and English and match whole words,
with the Indonesian enclitics -nya, -lah and -kah allowed
("capeknya", "sedihlah").
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from aura.primitives.intent import (
    EmotionTag,
    IntentResult,
    IntentSource,
    PrimaryIntent,
    SocialDynamic,
)


@dataclass(frozen=True)
class KeywordRule:
    keywords: tuple[str, ...]
    primary: PrimaryIntent
    emotion: EmotionTag
    dynamic: SocialDynamic
    confidence: float

    @property
    def pattern(self) -> re.Pattern[str]:
        alternatives = "|".join(re.escape(k) for k in self.keywords)
        return re.compile(rf"\b(?:{alternatives})(?:nya|lah|kah)?\b", re.IGNORECASE)


KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        keywords=("capek", "lelah", "exhausted", "tired", "drained", "burnt out", "burned out"),
        primary=PrimaryIntent.EMOTIONAL_VENTING,
        emotion=EmotionTag.WEARY_EXHAUSTED,
        dynamic=SocialDynamic.INTIMATE,
        confidence=0.8,
    ),
    KeywordRule(
        keywords=("kesal", "marah", "benci", "angry", "furious", "hate", "pissed"),
        primary=PrimaryIntent.EMOTIONAL_VENTING,
        emotion=EmotionTag.ANGRY_FRUSTRATED,
        dynamic=SocialDynamic.DISTANT,
        confidence=0.8,
    ),
    KeywordRule(
        keywords=("bantu", "tolong", "rencana", "buat", "help", "plan", "planning"),
        primary=PrimaryIntent.TASK_PLANNING,
        emotion=EmotionTag.CURIOUS_ENGAGED,
        dynamic=SocialDynamic.COLLABORATIVE,
        confidence=0.8,
    ),
    KeywordRule(
        keywords=("sedih", "galau", "cry", "crying", "sad", "lonely", "heartbroken"),
        primary=PrimaryIntent.SUPPORT_SEEKING,
        emotion=EmotionTag.SAD_GRIEF,
        dynamic=SocialDynamic.DEPENDENT,
        confidence=0.85,
    ),
    KeywordRule(
        keywords=("ingat", "kapan", "remember", "recall"),
        primary=PrimaryIntent.MEMORY_INQUIRY,
        emotion=EmotionTag.NEUTRAL,
        dynamic=SocialDynamic.COLLABORATIVE,
        confidence=0.7,
    ),
)

_COMPILED = tuple((rule, rule.pattern) for rule in KEYWORD_RULES)


def classify_by_keywords(text: str) -> IntentResult:
    """First matching rule, else neutral casual chat at full confidence."""
    for rule, pattern in _COMPILED:
        if pattern.search(text):
            return IntentResult(
                primary=rule.primary,
                emotion=rule.emotion,
                dynamic=rule.dynamic,
                confidence=rule.confidence,
                source=IntentSource.FALLBACK,
            )
    return IntentResult.neutral_casual()
