"""
Aura — Context System

Size-bounded context bundle assembly.
"""

from aura.systems.context.assembler import (
    LONELINESS_LABELS,
    ContextAssembler,
    compute_interaction_gap,
)
from aura.systems.context.types import (
    ContextBundle,
    EmotionSnapshot,
    InteractionGap,
    MemoryFragments,
    SessionSnapshot,
)

__all__ = [
    "LONELINESS_LABELS",
    "ContextAssembler",
    "compute_interaction_gap",
    "ContextBundle",
    "EmotionSnapshot",
    "InteractionGap",
    "MemoryFragments",
    "SessionSnapshot",
]
