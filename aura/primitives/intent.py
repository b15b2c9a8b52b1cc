"""
Aura — Intent Primitives

The three-axis interaction label produced for every user utterance.
"""

from __future__ import annotations

import enum

from pydantic import Field

from aura.primitives.common import AuraBaseModel


class PrimaryIntent(str, enum.Enum):
    CASUAL_CHAT = "casual_chat"                # Small talk, greetings, jokes
    DEEP_REFLECTION = "deep_reflection"        # Self-analysis, life decisions
    EMOTIONAL_VENTING = "emotional_venting"    # Releasing frustration or exhaustion
    SUPPORT_SEEKING = "support_seeking"        # Comfort, reassurance, validation
    TASK_PLANNING = "task_planning"            # Help with a specific task or idea
    MEMORY_INQUIRY = "memory_inquiry"          # Past conversations, shared history


class EmotionTag(str, enum.Enum):
    NEUTRAL = "neutral"
    JOYFUL_EXCITED = "joyful_excited"
    ANXIOUS_FEARFUL = "anxious_fearful"
    SAD_GRIEF = "sad_grief"
    ANGRY_FRUSTRATED = "angry_frustrated"
    WEARY_EXHAUSTED = "weary_exhausted"        # Burnout, distinct from sadness
    CURIOUS_ENGAGED = "curious_engaged"


class SocialDynamic(str, enum.Enum):
    COLLABORATIVE = "collaborative"
    DEPENDENT = "dependent"
    DISTANT = "distant"
    INTIMATE = "intimate"
    PLAYFUL = "playful"


class IntentSource(str, enum.Enum):
    MODEL = "model"
    FALLBACK = "fallback"


class IntentResult(AuraBaseModel):
    primary: PrimaryIntent
    emotion: EmotionTag
    dynamic: SocialDynamic
    confidence: float = Field(1.0, ge=0.0, le=1.0)
    source: IntentSource = IntentSource.FALLBACK

    @classmethod
    def neutral_casual(cls) -> IntentResult:
        """Default label when nothing more specific is known."""
        return cls(
            primary=PrimaryIntent.CASUAL_CHAT,
            emotion=EmotionTag.NEUTRAL,
            dynamic=SocialDynamic.PLAYFUL,
            confidence=1.0,
            source=IntentSource.FALLBACK,
        )
