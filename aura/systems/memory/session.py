"""
Aura — Session Memory Tracker

Rolling summary of the current conversation's emotional trajectory,
updated every turn by fixed rules. No free generation: the summary is a
template picked from intent and emotion.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aura.primitives.affect import Mood
from aura.primitives.common import clamp
from aura.primitives.intent import EmotionTag, PrimaryIntent
from aura.primitives.memory import SessionMemory

if TYPE_CHECKING:
    from aura.primitives.affect import EmotionState
    from aura.primitives.intent import IntentResult

EMOTIONALLY_LOADED = frozenset({
    PrimaryIntent.SUPPORT_SEEKING,
    PrimaryIntent.EMOTIONAL_VENTING,
    PrimaryIntent.DEEP_REFLECTION,
})
STABLE_INTENTS = frozenset({PrimaryIntent.CASUAL_CHAT, PrimaryIntent.TASK_PLANNING})

SIGNIFICANCE_DELTAS: dict[PrimaryIntent, float] = {
    PrimaryIntent.EMOTIONAL_VENTING: 0.3,
    PrimaryIntent.SUPPORT_SEEKING: 0.2,
    PrimaryIntent.DEEP_REFLECTION: 0.2,
    PrimaryIntent.TASK_PLANNING: 0.1,
}
LOW_MOOD_BONUS = 0.2


def summarize(intent: IntentResult) -> str:
    primary, emotion = intent.primary, intent.emotion
    if primary == PrimaryIntent.CASUAL_CHAT:
        return "User is casually chatting."
    if primary == PrimaryIntent.EMOTIONAL_VENTING:
        if emotion == EmotionTag.WEARY_EXHAUSTED:
            return "User feels exhausted and is venting."
        return "User is venting negative emotions."
    if primary == PrimaryIntent.SUPPORT_SEEKING:
        if emotion == EmotionTag.SAD_GRIEF:
            return "User feels sad and seeks presence."
        return "User seeks emotional support."
    if primary == PrimaryIntent.TASK_PLANNING:
        return "User is planning a task."
    if primary == PrimaryIntent.DEEP_REFLECTION:
        return "User is deeply reflecting on personal topics."
    return "User is interacting with the system."


def update_session_memory(
    previous: SessionMemory,
    intent: IntentResult,
    emotion: EmotionState,
) -> SessionMemory:
    """Apply one turn to the session memory. Returns a new record."""
    dominant_intent = previous.dominant_intent
    if intent.primary != PrimaryIntent.CASUAL_CHAT or dominant_intent is None:
        # Casual chat only seeds an empty value
        dominant_intent = intent.primary.value

    unresolved = previous.unresolved
    if intent.primary in EMOTIONALLY_LOADED and emotion.mood == Mood.LOW:
        unresolved = True
    if emotion.mood in (Mood.NEUTRAL, Mood.POSITIVE) and intent.primary in STABLE_INTENTS:
        unresolved = False

    delta = SIGNIFICANCE_DELTAS.get(intent.primary, 0.0)
    if emotion.mood == Mood.LOW:
        delta += LOW_MOOD_BONUS

    return previous.model_copy(update={
        "summary": summarize(intent),
        "dominant_intent": dominant_intent,
        "dominant_emotion": emotion.mood.value,
        "unresolved": unresolved,
        "significance": clamp(previous.significance + delta),
    })
