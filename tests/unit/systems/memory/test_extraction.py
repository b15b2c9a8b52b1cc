"""Unit tests for memory extraction and embedding backfill."""

from __future__ import annotations

import json

import pytest

from aura.clients.embedding import EmbeddingClient, MockEmbeddingClient
from aura.config import MemoryConfig
from aura.errors import MalformedOutputError
from aura.primitives.memory import EpisodicMemory, IdentityMemory, SemanticMemory
from aura.storage.memory import InMemoryStorage
from aura.systems.memory.extraction import (
    MemoryExtractor,
    backfill_episodic_embedding,
    backfill_semantic_embedding,
    parse_extraction,
)
from aura.systems.memory.retrieval import fetch_long_term_memory


class _BrokenEmbedder(EmbeddingClient):
    async def embed(self, text: str) -> list[float]:
        raise RuntimeError("embedding endpoint down")

    async def close(self) -> None:
        pass


class TestParseExtraction:
    def test_valid(self) -> None:
        raw = json.dumps({
            "semantic": [{"key": "user_name", "value": "Budi", "source": "explicit_user"}],
            "identity": [{"belief": "User values honesty", "confidence": 0.8}],
        })
        result = parse_extraction(raw)
        assert [(m.key, m.value, m.source) for m in result.semantic] == [("user_name", "Budi", "explicit_user")]
        assert result.identity[0].confidence == pytest.approx(0.8)

    def test_bad_items_are_skipped(self) -> None:
        raw = json.dumps({
            "semantic": [{"key": "", "value": "x"}, "junk", {"key": "pet", "value": "cat"}],
            "identity": [{"confidence": 0.9}, {"belief": "User is kind", "confidence": "high"}],
        })
        result = parse_extraction(raw)
        assert [m.key for m in result.semantic] == ["pet"]
        assert result.semantic[0].source == "system_inferred"
        # Unparseable confidence defaults to 0.5
        assert [(b.belief, b.confidence) for b in result.identity] == [("User is kind", 0.5)]

    def test_empty_arrays(self) -> None:
        result = parse_extraction('{"semantic": [], "identity": []}')
        assert result.semantic == [] and result.identity == []

    def test_non_array_is_malformed(self) -> None:
        with pytest.raises(MalformedOutputError):
            parse_extraction('{"semantic": "user_name=Budi"}')


class TestMemoryExtractor:
    async def test_upserts_extracted_records(self, scripted_llm, storage: InMemoryStorage) -> None:
        llm = scripted_llm(responses={"extraction": json.dumps({
            "semantic": [{"key": "user_job", "value": "nurse"}],
            "identity": [{"belief": "User cares deeply for others", "confidence": 0.7}],
        })})
        result = await MemoryExtractor(llm, storage).extract("I work night shifts as a nurse", "User is casually chatting.")

        assert [m.key for m in result.semantic] == ["user_job"]
        assert storage.semantic["user_job"].value == "nurse"
        assert "User cares deeply for others" in storage.identity
        call = llm.calls_of("extraction")[0]
        assert call.output_format == "json"
        assert "User is casually chatting." in call.prompt

    async def test_malformed_output_is_discarded(self, scripted_llm, storage: InMemoryStorage) -> None:
        llm = scripted_llm(responses={"extraction": "nothing worth saving"})
        result = await MemoryExtractor(llm, storage).extract("hi", "")
        assert result.semantic == [] and result.identity == []
        assert storage.semantic == {}

    async def test_existing_fact_is_updated_in_place(self, scripted_llm, storage: InMemoryStorage) -> None:
        await storage.upsert_semantic(SemanticMemory(key="user_city", value="Bandung"))
        llm = scripted_llm(responses={"extraction": json.dumps({
            "semantic": [{"key": "user_city", "value": "Jakarta"}],
            "identity": [],
        })})
        await MemoryExtractor(llm, storage).extract("I moved to Jakarta", "")
        assert len(storage.semantic) == 1
        assert storage.semantic["user_city"].value == "Jakarta"


class TestBackfill:
    async def test_semantic_backfill(self, storage: InMemoryStorage) -> None:
        fact = await storage.upsert_semantic(SemanticMemory(key="user_name", value="Budi"))
        await backfill_semantic_embedding(storage, MockEmbeddingClient(dimension=8), fact)
        assert storage.semantic["user_name"].embedding is not None
        assert len(storage.semantic["user_name"].embedding) == 8

    async def test_episodic_backfill(self, storage: InMemoryStorage) -> None:
        episode = EpisodicMemory(summary="User feels exhausted and is venting.", emotion="low", importance=0.8)
        await storage.create_episodic(episode)
        await backfill_episodic_embedding(storage, MockEmbeddingClient(dimension=8), episode)
        assert storage.episodic[0].embedding is not None
        assert storage.episodic[0].summary == episode.summary

    async def test_failures_never_raise(self, storage: InMemoryStorage) -> None:
        fact = await storage.upsert_semantic(SemanticMemory(key="user_name", value="Budi"))
        await backfill_semantic_embedding(storage, _BrokenEmbedder(), fact)
        await backfill_semantic_embedding(storage, None, fact)
        assert storage.semantic["user_name"].embedding is None


class TestRetrieval:
    async def test_fetch_respects_limits(self, storage: InMemoryStorage) -> None:
        for i in range(7):
            await storage.create_episodic(EpisodicMemory(summary=f"moment {i}", emotion="low", importance=0.8))
        await storage.upsert_identity(IdentityMemory(belief="User is resilient", confidence=0.6))
        batch = await fetch_long_term_memory(storage, MemoryConfig(retrieval_episodic_limit=5))
        assert len(batch.episodic) == 5
        assert batch.episodic[0].summary == "moment 6"
        assert [b.belief for b in batch.identity] == ["User is resilient"]
