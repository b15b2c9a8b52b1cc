"""
Aura — Reflection Primitives

The companion's view of itself: per-turn self-state read-backs, private
monologue entries and the identity beliefs the user has spoken to it.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from aura.primitives.common import AuraBaseModel, Identified, Timestamped, utc_now


class SelfState(Identified, Timestamped):
    """Inner-state read-back declared at the end of a reply."""

    current_state: str                 # e.g. "curious, engaged, a little uncertain"
    intensity: str                     # "low" | "moderate" | "high"
    shift_from_last: str | None = None
    notable: str | None = None


class MonologueEntry(Identified, Timestamped):
    """A private reflection generated between conversations."""

    content: str
    emotional_tone: str = ""
    triggered_by: str = "heartbeat"    # "heartbeat" | "manual"
    surfaced: bool = False


class SelfBelief(Identified):
    """A first-person belief distilled from something the user said about the companion."""

    belief: str
    source_statement: str | None = None
    spoken_at: datetime = Field(default_factory=utc_now)


class MonologueDraft(AuraBaseModel):
    content: str
    emotional_tone: str
