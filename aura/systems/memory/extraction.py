"""
Aura — Memory Extraction

Best-effort pass after the reply is sent: ask the model for new durable
facts (semantic) and beliefs (identity) about the user, then upsert them.
Malformed output is discarded. Embedding backfill for new records runs
fire-and-forget; its failures are logged and never reach the turn.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from aura.clients.embedding import safe_embed
from aura.clients.llm import GenerateOptions
from aura.clients.output import parse_json_object
from aura.errors import MalformedOutputError
from aura.primitives.common import clamp
from aura.primitives.memory import IdentityMemory, SemanticMemory
from aura.prompts.extraction import build_extraction_prompt

if TYPE_CHECKING:
    from aura.clients.embedding import EmbeddingClient
    from aura.clients.llm import LLMProvider
    from aura.primitives.memory import EpisodicMemory
    from aura.storage.base import Storage

logger = structlog.get_logger()


@dataclass
class ExtractionResult:
    semantic: list[SemanticMemory] = field(default_factory=list)
    identity: list[IdentityMemory] = field(default_factory=list)


def parse_extraction(raw: str) -> ExtractionResult:
    """
    Parse the extraction JSON. Individual malformed items are skipped;
    a malformed envelope raises MalformedOutputError.
    """
    data = parse_json_object(raw)
    result = ExtractionResult()

    semantic: Any = data.get("semantic") or []
    identity: Any = data.get("identity") or []
    if not isinstance(semantic, list) or not isinstance(identity, list):
        raise MalformedOutputError("semantic/identity must be arrays")

    for item in semantic:
        if not isinstance(item, dict):
            continue
        key, value = item.get("key"), item.get("value")
        if not isinstance(key, str) or not key.strip() or value is None:
            continue
        result.semantic.append(SemanticMemory(
            key=key.strip(),
            value=str(value).strip(),
            source=str(item.get("source") or "system_inferred"),
        ))

    for item in identity:
        if not isinstance(item, dict):
            continue
        belief = item.get("belief")
        if not isinstance(belief, str) or not belief.strip():
            continue
        try:
            confidence = clamp(float(item.get("confidence") or 0.5))
        except (TypeError, ValueError):
            confidence = 0.5
        result.identity.append(IdentityMemory(belief=belief.strip(), confidence=confidence))

    return result


class MemoryExtractor:
    def __init__(self, llm: LLMProvider, storage: Storage) -> None:
        self._llm = llm
        self._storage = storage
        self._logger = logger.bind(system="memory.extraction")

    async def extract(self, text: str, session_summary: str) -> ExtractionResult:
        """Extract and upsert. Returns the stored records."""
        raw = await self._llm.generate_text(
            build_extraction_prompt(text, session_summary),
            GenerateOptions(temperature=0.2, max_tokens=1000, json_mode=True),
        )
        try:
            parsed = parse_extraction(raw)
        except MalformedOutputError as exc:
            self._logger.warning("extraction_output_discarded", error=str(exc))
            return ExtractionResult()

        stored = ExtractionResult()
        for fact in parsed.semantic:
            stored.semantic.append(await self._storage.upsert_semantic(fact))
        for belief in parsed.identity:
            stored.identity.append(await self._storage.upsert_identity(belief))

        if stored.semantic or stored.identity:
            self._logger.info(
                "memories_extracted",
                semantic=[m.key for m in stored.semantic],
                identity_count=len(stored.identity),
            )
        return stored


# ─── Embedding backfill ───────────────────────────────────────────


async def backfill_semantic_embedding(
    storage: Storage,
    embedder: EmbeddingClient | None,
    memory: SemanticMemory,
) -> None:
    try:
        vector = await safe_embed(embedder, memory.rendered)
        if vector is not None:
            await storage.set_semantic_embedding(memory.key, vector)
    except Exception as exc:
        logger.warning("semantic_backfill_failed", key=memory.key, error=str(exc))


async def backfill_episodic_embedding(
    storage: Storage,
    embedder: EmbeddingClient | None,
    memory: EpisodicMemory,
) -> None:
    try:
        vector = await safe_embed(embedder, memory.rendered)
        if vector is not None:
            await storage.set_episodic_embedding(memory.id, vector)
    except Exception as exc:
        logger.warning("episodic_backfill_failed", memory_id=memory.id, error=str(exc))
