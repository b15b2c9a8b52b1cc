"""
Aura — Long-Term Memory Retrieval

Gathers the candidate batch the context assembler ranks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aura.primitives.memory import LongTermMemory

if TYPE_CHECKING:
    from aura.config import MemoryConfig
    from aura.storage.base import Storage


async def fetch_long_term_memory(storage: Storage, config: MemoryConfig) -> LongTermMemory:
    episodic = await storage.recent_episodic(config.retrieval_episodic_limit)
    traces = await storage.top_traces(config.retrieval_trace_limit)
    semantic = await storage.list_semantic()
    identity = await storage.list_identity()
    return LongTermMemory(
        episodic=episodic,
        traces=traces,
        semantic=semantic,
        identity=identity,
    )
