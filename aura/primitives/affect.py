"""
Aura — Emotion State Primitive

The companion's bounded emotional state. One instance per companion,
read at turn start, decayed, mutated and persisted at turn end.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import Field

from aura.primitives.common import AuraBaseModel, utc_now


class Mood(str, enum.Enum):
    LOW = "low"
    NEUTRAL = "neutral"
    POSITIVE = "positive"


BOUNDED_FIELDS: tuple[str, ...] = (
    "energy",
    "attachment",
    "social_battery",
    "sleepiness",
    "irritation",
    "volatility",
    "curiosity",
)


class EmotionState(AuraBaseModel):
    """
    Companion emotion vector.

    Every float field lives in [0, 1]. Mutations go through the emotion
    engine, which clamps; validation here rejects anything that slipped past.
    """

    mood: Mood = Mood.NEUTRAL
    energy: float = Field(0.5, ge=0.0, le=1.0)
    attachment: float = Field(0.5, ge=0.0, le=1.0)
    social_battery: float = Field(1.0, ge=0.0, le=1.0)   # 0 drained, 1 full
    sleepiness: float = Field(0.0, ge=0.0, le=1.0)       # 0 awake, 1 asleep
    irritation: float = Field(0.0, ge=0.0, le=1.0)       # 0 calm, 1 furious
    volatility: float = Field(0.5, ge=0.0, le=1.0)       # 0 stable, 1 unpredictable
    curiosity: float = Field(0.5, ge=0.0, le=1.0)        # 0 bored, 1 invested
    last_updated: datetime = Field(default_factory=utc_now)

    def bounded_values(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in BOUNDED_FIELDS}
