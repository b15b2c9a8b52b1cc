"""
Aura — Emotion State Engine

Two-phase update of the companion's bounded emotion vector:

1. Time decay since ``last_updated``: energy, attachment and curiosity
   drift back to their 0.5 baseline; social battery recharges; irritation
   cools; a long absence resets mood to neutral.
2. Event update from the classified turn: sleep cycle, battery drain,
   curiosity, mood lookup, energy and attachment deltas scaled by a
   personality-derived sensitivity.

Pure: every call returns a new EmotionState. Every bounded field is
clamped to [0, 1] after every mutation.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Sequence

import structlog

from aura.primitives.affect import EmotionState, Mood
from aura.primitives.common import clamp, hours_between, utc_now
from aura.primitives.intent import EmotionTag, PrimaryIntent, SocialDynamic

if TYPE_CHECKING:
    from aura.config import EmotionConfig
    from aura.primitives.intent import IntentResult

logger = structlog.get_logger()

BASELINE = 0.5

OPEN_TRAITS = ("sensitive", "emotional", "empathetic", "warm")
STOIC_TRAITS = ("stoic", "calm", "reserved", "logical")
SENSITIVITY_STEP = 0.3
SENSITIVITY_BOUNDS = (0.5, 2.0)

NIGHT_SLEEPINESS_RISE = 0.2
DAY_SLEEPINESS_DROP = 0.3
SLEEPY_IRRITATION_RISE = 0.15
SLEEPY_BATTERY_DRAIN = 0.1
SLEEPY_WAKE = 0.1
VENTING_BATTERY_DRAIN = 0.05
BASE_BATTERY_DRAIN = 0.02
CURIOSITY_RISE = 0.05
CURIOSITY_FALL = 0.01
LOW_BATTERY_ENERGY_DRAG = 0.05

CURIOUS_INTENTS = frozenset({
    PrimaryIntent.DEEP_REFLECTION,
    PrimaryIntent.TASK_PLANNING,
    PrimaryIntent.MEMORY_INQUIRY,
})

ENERGY_DELTAS: dict[EmotionTag, float] = {
    EmotionTag.WEARY_EXHAUSTED: -0.1,
    EmotionTag.SAD_GRIEF: -0.1,
    EmotionTag.JOYFUL_EXCITED: 0.1,
    EmotionTag.ANGRY_FRUSTRATED: 0.1,
    EmotionTag.NEUTRAL: 0.01,
}

ATTACHMENT_DELTAS: dict[SocialDynamic, float] = {
    SocialDynamic.INTIMATE: 0.08,
    SocialDynamic.DEPENDENT: 0.05,
    SocialDynamic.COLLABORATIVE: 0.02,
    SocialDynamic.PLAYFUL: 0.02,
    SocialDynamic.DISTANT: -0.02,
}
SUPPORT_ATTACHMENT_BONUS = 0.02


def _toward(value: float, target: float, amount: float) -> float:
    """Move ``value`` toward ``target`` by ``amount`` without overshooting."""
    if value > target:
        return max(target, value - amount)
    if value < target:
        return min(target, value + amount)
    return value


def sensitivity_for(traits: Sequence[str]) -> float:
    """Personality sensitivity multiplier, clamped to [0.5, 2.0]."""
    lowered = [t.lower() for t in traits]
    sensitivity = 1.0
    if any(word in t for t in lowered for word in OPEN_TRAITS):
        sensitivity += SENSITIVITY_STEP
    if any(word in t for t in lowered for word in STOIC_TRAITS):
        sensitivity -= SENSITIVITY_STEP
    return clamp(sensitivity, *SENSITIVITY_BOUNDS)


def next_mood(current: Mood, intent: IntentResult) -> Mood:
    """Fixed intent → mood lookup. Intents not listed leave mood unchanged."""
    if intent.primary == PrimaryIntent.EMOTIONAL_VENTING:
        return Mood.LOW
    if intent.primary == PrimaryIntent.SUPPORT_SEEKING:
        return Mood.NEUTRAL if current == Mood.POSITIVE else current
    if intent.primary == PrimaryIntent.CASUAL_CHAT:
        return Mood.POSITIVE if intent.emotion == EmotionTag.JOYFUL_EXCITED else current
    if intent.primary == PrimaryIntent.TASK_PLANNING:
        return Mood.NEUTRAL
    return current


class EmotionEngine:
    def __init__(self, config: EmotionConfig) -> None:
        self._config = config
        self._tz = timezone(timedelta(hours=config.timezone_offset_hours))
        self._logger = logger.bind(system="emotion")

    def is_night(self, now: datetime) -> bool:
        hour = now.astimezone(self._tz).hour
        start, end = self._config.night_start_hour, self._config.night_end_hour
        if start > end:
            return hour >= start or hour < end
        return start <= hour < end

    # ─── Phase 1: time decay ─────────────────────────────────────

    def apply_time_decay(self, state: EmotionState, now: datetime | None = None) -> EmotionState:
        now = now or utc_now()
        hours = hours_between(state.last_updated, now)
        if hours < self._config.min_decay_hours:
            return state

        cfg = self._config
        decay = hours * cfg.decay_rate_per_hour
        mood = Mood.NEUTRAL if hours > cfg.mood_reset_hours else state.mood

        decayed = state.model_copy(update={
            "mood": mood,
            "energy": clamp(_toward(state.energy, BASELINE, decay)),
            "attachment": clamp(_toward(state.attachment, BASELINE, decay)),
            "social_battery": clamp(
                state.social_battery + hours * cfg.social_battery_recharge_per_hour
            ),
            "irritation": clamp(state.irritation - hours * cfg.irritation_decay_per_hour),
            "curiosity": clamp(
                _toward(state.curiosity, BASELINE, hours * cfg.curiosity_drift_per_hour)
            ),
        })
        self._logger.debug("emotion_time_decay", hours=round(hours, 2), delta=round(decay, 4))
        return decayed

    # ─── Phase 2: event update ───────────────────────────────────

    def update(
        self,
        state: EmotionState,
        intent: IntentResult,
        traits: Sequence[str] | None = None,
        now: datetime | None = None,
    ) -> EmotionState:
        """Decay, then apply the turn's deltas. Returns a new state stamped ``now``."""
        now = now or utc_now()
        cfg = self._config
        s = self.apply_time_decay(state, now)

        sensitivity = sensitivity_for(traits or [])

        # Sleep cycle
        if self.is_night(now):
            sleepiness = clamp(s.sleepiness + NIGHT_SLEEPINESS_RISE)
        else:
            sleepiness = clamp(s.sleepiness - DAY_SLEEPINESS_DROP)

        irritation = s.irritation
        if sleepiness > cfg.sleepy_threshold:
            # Chatting while sleepy
            irritation = clamp(irritation + SLEEPY_IRRITATION_RISE)
            battery = clamp(s.social_battery - SLEEPY_BATTERY_DRAIN)
            sleepiness = clamp(sleepiness - SLEEPY_WAKE)
        else:
            drain = (
                VENTING_BATTERY_DRAIN
                if intent.primary == PrimaryIntent.EMOTIONAL_VENTING
                else BASE_BATTERY_DRAIN
            )
            battery = clamp(s.social_battery - drain)

        if intent.primary in CURIOUS_INTENTS:
            curiosity = clamp(s.curiosity + CURIOSITY_RISE)
        else:
            curiosity = clamp(s.curiosity - CURIOSITY_FALL)

        mood = next_mood(s.mood, intent)

        volatility_multiplier = 1.0 + s.volatility * 0.5
        energy_delta = ENERGY_DELTAS.get(intent.emotion, 0.0) * sensitivity * volatility_multiplier
        if battery < cfg.low_battery_threshold:
            energy_delta -= LOW_BATTERY_ENERGY_DRAG
        energy = clamp(s.energy + energy_delta)

        attachment_delta = ATTACHMENT_DELTAS.get(intent.dynamic, 0.0)
        if intent.primary == PrimaryIntent.SUPPORT_SEEKING:
            attachment_delta += SUPPORT_ATTACHMENT_BONUS
        attachment_delta *= sensitivity
        if irritation > cfg.irritation_block_threshold:
            # No bonding while irritated
            attachment_delta = min(0.0, attachment_delta)
        attachment = clamp(s.attachment + attachment_delta)

        updated = s.model_copy(update={
            "mood": mood,
            "energy": energy,
            "attachment": attachment,
            "social_battery": battery,
            "sleepiness": sleepiness,
            "irritation": irritation,
            "curiosity": curiosity,
            "last_updated": now,
        })
        self._logger.debug(
            "emotion_updated",
            mood=mood.value,
            energy=round(energy, 3),
            attachment=round(attachment, 3),
            social_battery=round(battery, 3),
            sleepiness=round(sleepiness, 3),
            irritation=round(irritation, 3),
            sensitivity=sensitivity,
        )
        return updated
