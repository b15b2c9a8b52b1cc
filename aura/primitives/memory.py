"""
Aura — Memory Primitives

Session, short-term and long-term memory records.

Long-term layers:
  EpisodicMemory  — one significant moment, immutable except for its embedding
  EmotionalTrace  — a recurring pattern whose confidence grows with evidence
  SemanticMemory  — key → value facts about the user
  IdentityMemory  — abstract beliefs about the user
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import Field

from aura.primitives.common import AuraBaseModel, Identified, Timestamped, utc_now


class EmotionalWeight(str, enum.Enum):
    """How deeply a moment landed."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DecayRate(str, enum.Enum):
    """Retrieval relevance window of an episodic memory."""

    SLOW = "slow"        # 30 days
    NORMAL = "normal"    # 7 days
    FAST = "fast"        # 2 days


class SessionMemory(AuraBaseModel):
    """Rolling summary of the current conversation's emotional trajectory."""

    summary: str = ""
    dominant_intent: str | None = None
    dominant_emotion: str = "neutral"
    unresolved: bool = False
    significance: float = Field(0.0, ge=0.0, le=1.0)


class EpisodicMemory(Identified, Timestamped):
    summary: str
    narrative: str | None = None          # First-person companion perspective
    emotion: str
    importance: float = Field(ge=0.0, le=1.0)
    emotional_weight: EmotionalWeight | None = None
    decay_rate: DecayRate | None = DecayRate.NORMAL
    embedding: list[float] | None = None

    model_config = {"frozen": True, "populate_by_name": True, "from_attributes": True}

    @property
    def rendered(self) -> str:
        return self.narrative or self.summary


class EmotionalTrace(Identified):
    pattern: str
    confidence: float = Field(ge=0.0, le=1.0)
    evidence_count: int = Field(1, ge=1)
    last_updated: datetime = Field(default_factory=utc_now)


class SemanticMemory(Identified):
    key: str
    value: str
    source: str = "system_inferred"
    embedding: list[float] | None = None
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def rendered(self) -> str:
        return f"{self.key}: {self.value}"


class IdentityMemory(Identified):
    belief: str
    confidence: float = Field(0.5, ge=0.0, le=1.0)


class LongTermMemory(AuraBaseModel):
    """Candidate batch handed to the context assembler."""

    episodic: list[EpisodicMemory] = Field(default_factory=list)
    traces: list[EmotionalTrace] = Field(default_factory=list)
    semantic: list[SemanticMemory] = Field(default_factory=list)
    identity: list[IdentityMemory] = Field(default_factory=list)
