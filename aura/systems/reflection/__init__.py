"""
Aura — Reflection System

Self-state read-back, private monologue and the self-model.
"""

from aura.systems.reflection.monologue import MonologueService, parse_monologue
from aura.systems.reflection.self_model import (
    ACKNOWLEDGEMENT_FALLBACK,
    EXTRACTION_FALLBACK,
    SelfModelService,
    is_self_identity_statement,
)
from aura.systems.reflection.self_state import (
    ParsedReply,
    parse_delimited,
    parse_envelope,
    parse_self_state,
)

__all__ = [
    "MonologueService",
    "parse_monologue",
    "ACKNOWLEDGEMENT_FALLBACK",
    "EXTRACTION_FALLBACK",
    "SelfModelService",
    "is_self_identity_statement",
    "ParsedReply",
    "parse_delimited",
    "parse_envelope",
    "parse_self_state",
]
