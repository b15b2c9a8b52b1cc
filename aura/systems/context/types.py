"""
Aura — Context Types

The bounded bundle handed to response generation. Rendered text only:
no raw logs, no confidence scores, no embeddings.
"""

from __future__ import annotations

from pydantic import Field

from aura.primitives.common import AuraBaseModel


class EmotionSnapshot(AuraBaseModel):
    mood: str
    energy: float
    attachment: float
    social_battery: float
    sleepiness: float
    irritation: float
    curiosity: float
    is_sleep_time: bool = False


class InteractionGap(AuraBaseModel):
    hours: float = 0.0
    loneliness_label: str = "none"


class SessionSnapshot(AuraBaseModel):
    summary: str = ""
    unresolved: bool = False


class MemoryFragments(AuraBaseModel):
    episodic: list[str] = Field(default_factory=list)
    emotional_traces: list[str] = Field(default_factory=list)
    semantic: list[str] = Field(default_factory=list)    # "key: value"
    identity: list[str] = Field(default_factory=list)    # belief text


class ContextBundle(AuraBaseModel):
    emotion: EmotionSnapshot
    interaction_gap: InteractionGap
    session: SessionSnapshot
    memories: MemoryFragments
