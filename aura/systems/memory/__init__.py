"""
Aura — Memory System

Session bookkeeping, long-term promotion, extraction and retrieval.
"""

from aura.systems.memory.extraction import (
    ExtractionResult,
    MemoryExtractor,
    backfill_episodic_embedding,
    backfill_semantic_embedding,
    parse_extraction,
)
from aura.systems.memory.promotion import (
    MemoryPromotionEngine,
    PromotionResult,
    qualifies_for_episodic,
    qualifies_for_trace,
)
from aura.systems.memory.retrieval import fetch_long_term_memory
from aura.systems.memory.session import summarize, update_session_memory

__all__ = [
    "ExtractionResult",
    "MemoryExtractor",
    "backfill_episodic_embedding",
    "backfill_semantic_embedding",
    "parse_extraction",
    "MemoryPromotionEngine",
    "PromotionResult",
    "qualifies_for_episodic",
    "qualifies_for_trace",
    "fetch_long_term_memory",
    "summarize",
    "update_session_memory",
]
