"""
Aura — Primitives

Shared record types. Every subsystem speaks in these.
"""

from aura.primitives.affect import BOUNDED_FIELDS, EmotionState, Mood
from aura.primitives.common import (
    AuraBaseModel,
    Identified,
    Timestamped,
    clamp,
    hours_between,
    new_id,
    utc_now,
)
from aura.primitives.conversation import (
    ChatMessage,
    CompanionPersonality,
    CompanionSettings,
    Role,
    STMTurn,
    UserPersona,
)
from aura.primitives.intent import (
    EmotionTag,
    IntentResult,
    IntentSource,
    PrimaryIntent,
    SocialDynamic,
)
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
from aura.primitives.reflection import MonologueDraft, MonologueEntry, SelfBelief, SelfState

__all__ = [
    "AuraBaseModel",
    "Identified",
    "Timestamped",
    "clamp",
    "hours_between",
    "new_id",
    "utc_now",
    "BOUNDED_FIELDS",
    "EmotionState",
    "Mood",
    "ChatMessage",
    "CompanionPersonality",
    "CompanionSettings",
    "Role",
    "STMTurn",
    "UserPersona",
    "EmotionTag",
    "IntentResult",
    "IntentSource",
    "PrimaryIntent",
    "SocialDynamic",
    "DecayRate",
    "EmotionalTrace",
    "EmotionalWeight",
    "EpisodicMemory",
    "IdentityMemory",
    "LongTermMemory",
    "SemanticMemory",
    "SessionMemory",
    "MonologueDraft",
    "MonologueEntry",
    "SelfBelief",
    "SelfState",
]
