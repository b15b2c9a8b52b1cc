"""
Aura — Common Primitives

Shared base classes and utilities used by every record type.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field
from ulid import ULID


def new_id() -> str:
    """Generate a new ULID string. Time-sortable, globally unique."""
    return str(ULID())


def utc_now() -> datetime:
    """Current UTC time, timezone-aware."""
    return datetime.now(timezone.utc)


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def hours_between(earlier: datetime, later: datetime) -> float:
    """Elapsed hours from ``earlier`` to ``later``. Never negative."""
    return max(0.0, (later - earlier).total_seconds() / 3600.0)


# ─── Base Models ──────────────────────────────────────────────────


class AuraBaseModel(BaseModel):
    """Base model for all Aura records."""

    model_config = {"populate_by_name": True, "from_attributes": True}


class Timestamped(AuraBaseModel):
    """Mixin for models with creation timestamps."""

    created_at: datetime = Field(default_factory=utc_now)


class Identified(AuraBaseModel):
    """Mixin for models with ULID IDs."""

    id: str = Field(default_factory=new_id)
