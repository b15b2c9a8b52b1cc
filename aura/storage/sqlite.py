"""
Aura — SQLite Storage

One file holds one companion. The blocking sqlite3 calls run in a worker
thread; a lock serialises access to the shared connection.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

import structlog

from aura.primitives.affect import EmotionState
from aura.primitives.conversation import ChatMessage, CompanionSettings
from aura.primitives.memory import (
    EmotionalTrace,
    EpisodicMemory,
    IdentityMemory,
    SemanticMemory,
)
from aura.primitives.reflection import MonologueEntry, SelfBelief, SelfState
from aura.storage.base import Storage

logger = structlog.get_logger()

T = TypeVar("T")

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS kv (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS chat_messages (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        conversation_id TEXT NOT NULL DEFAULT 'default',
        role TEXT NOT NULL,
        content TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_chat_conversation
        ON chat_messages(conversation_id, seq DESC);

    CREATE TABLE IF NOT EXISTS episodic_memories (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        summary TEXT NOT NULL,
        narrative TEXT,
        emotion TEXT NOT NULL,
        importance REAL NOT NULL,
        emotional_weight TEXT,
        decay_rate TEXT,
        embedding TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS emotional_traces (
        pattern TEXT PRIMARY KEY,
        id TEXT NOT NULL,
        confidence REAL NOT NULL,
        evidence_count INTEGER NOT NULL DEFAULT 1,
        last_updated TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS semantic_memories (
        key TEXT PRIMARY KEY,
        id TEXT NOT NULL,
        value TEXT NOT NULL,
        source TEXT NOT NULL DEFAULT 'system_inferred',
        embedding TEXT,
        timestamp TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS identity_memories (
        belief TEXT PRIMARY KEY,
        id TEXT NOT NULL,
        confidence REAL NOT NULL DEFAULT 0.5
    );

    CREATE TABLE IF NOT EXISTS self_states (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        current_state TEXT NOT NULL,
        intensity TEXT NOT NULL,
        shift_from_last TEXT,
        notable TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS monologues (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        content TEXT NOT NULL,
        emotional_tone TEXT NOT NULL DEFAULT '',
        triggered_by TEXT NOT NULL DEFAULT 'heartbeat',
        surfaced INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_monologues_surfaced
        ON monologues(surfaced, seq DESC);

    CREATE TABLE IF NOT EXISTS self_beliefs (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        belief TEXT NOT NULL,
        source_statement TEXT,
        spoken_at TEXT NOT NULL
    );
"""


def _dump_vector(vector: list[float] | None) -> str | None:
    return json.dumps(vector) if vector else None


def _load_vector(raw: str | None) -> list[float] | None:
    if not raw:
        return None
    try:
        return json.loads(raw)  # type: ignore[no-any-return]
    except json.JSONDecodeError:
        logger.warning("sqlite_malformed_embedding")
        return None


class SQLiteStorage(Storage):
    """SQLite backend. Zero config. Portable."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        if self.path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        self._conn.commit()
        self._lock = threading.Lock()

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        def call() -> T:
            with self._lock:
                return fn(*args)

        return await asyncio.to_thread(call)

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> None:
        self._conn.execute(sql, params)
        self._conn.commit()

    def _fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        return [dict(r) for r in self._conn.execute(sql, params).fetchall()]

    def _fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        row = self._conn.execute(sql, params).fetchone()
        return dict(row) if row is not None else None

    # ─── Settings & companion state ──────────────────────────────

    def _get_kv(self, key: str) -> str | None:
        row = self._fetchone("SELECT value FROM kv WHERE key = ?", (key,))
        return row["value"] if row else None

    def _set_kv(self, key: str, value: str) -> None:
        self._execute(
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )

    async def get_settings(self) -> CompanionSettings:
        raw = await self._run(self._get_kv, "settings")
        if raw is None:
            return CompanionSettings()
        return CompanionSettings.model_validate_json(raw)

    async def update_settings(self, updates: dict[str, Any]) -> CompanionSettings:
        current = await self.get_settings()
        merged = CompanionSettings.model_validate({**current.model_dump(), **updates})
        await self._run(self._set_kv, "settings", merged.model_dump_json())
        return merged

    async def get_emotion_state(self) -> EmotionState:
        raw = await self._run(self._get_kv, "emotion_state")
        if raw is None:
            return EmotionState()
        return EmotionState.model_validate_json(raw)

    async def save_emotion_state(self, state: EmotionState) -> None:
        await self._run(self._set_kv, "emotion_state", state.model_dump_json())

    # ─── Transcript ──────────────────────────────────────────────

    async def append_message(self, message: ChatMessage) -> None:
        await self._run(
            self._execute,
            "INSERT INTO chat_messages (id, conversation_id, role, content, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                message.id,
                message.conversation_id,
                message.role.value,
                message.content,
                message.created_at.isoformat(),
            ),
        )

    async def recent_messages(
        self,
        limit: int,
        conversation_id: str | None = None,
    ) -> list[ChatMessage]:
        if limit <= 0:
            return []
        if conversation_id is None:
            rows = await self._run(
                self._fetchall,
                "SELECT * FROM chat_messages ORDER BY seq DESC LIMIT ?",
                (limit,),
            )
        else:
            rows = await self._run(
                self._fetchall,
                "SELECT * FROM chat_messages WHERE conversation_id = ? ORDER BY seq DESC LIMIT ?",
                (conversation_id, limit),
            )
        rows.reverse()
        return [ChatMessage.model_validate({k: v for k, v in r.items() if k != "seq"}) for r in rows]

    # ─── Episodic ────────────────────────────────────────────────

    async def create_episodic(self, memory: EpisodicMemory) -> None:
        await self._run(
            self._execute,
            "INSERT INTO episodic_memories (id, summary, narrative, emotion, importance, "
            "emotional_weight, decay_rate, embedding, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                memory.id,
                memory.summary,
                memory.narrative,
                memory.emotion,
                memory.importance,
                memory.emotional_weight.value if memory.emotional_weight else None,
                memory.decay_rate.value if memory.decay_rate else None,
                _dump_vector(memory.embedding),
                memory.created_at.isoformat(),
            ),
        )

    async def recent_episodic(self, limit: int) -> list[EpisodicMemory]:
        rows = await self._run(
            self._fetchall,
            "SELECT * FROM episodic_memories ORDER BY seq DESC LIMIT ?",
            (limit,),
        )
        return [
            EpisodicMemory.model_validate({
                **{k: v for k, v in r.items() if k != "seq"},
                "embedding": _load_vector(r["embedding"]),
            })
            for r in rows
        ]

    async def set_episodic_embedding(self, memory_id: str, embedding: list[float]) -> None:
        await self._run(
            self._execute,
            "UPDATE episodic_memories SET embedding = ? WHERE id = ?",
            (_dump_vector(embedding), memory_id),
        )

    # ─── Emotional traces ────────────────────────────────────────

    async def get_trace(self, pattern: str) -> EmotionalTrace | None:
        row = await self._run(
            self._fetchone,
            "SELECT * FROM emotional_traces WHERE pattern = ?",
            (pattern,),
        )
        return EmotionalTrace.model_validate(row) if row else None

    async def upsert_trace(self, trace: EmotionalTrace) -> None:
        await self._run(
            self._execute,
            "INSERT INTO emotional_traces (pattern, id, confidence, evidence_count, last_updated) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(pattern) DO UPDATE SET "
            "confidence = excluded.confidence, "
            "evidence_count = excluded.evidence_count, "
            "last_updated = excluded.last_updated",
            (
                trace.pattern,
                trace.id,
                trace.confidence,
                trace.evidence_count,
                trace.last_updated.isoformat(),
            ),
        )

    async def top_traces(self, limit: int) -> list[EmotionalTrace]:
        rows = await self._run(
            self._fetchall,
            "SELECT * FROM emotional_traces ORDER BY confidence DESC LIMIT ?",
            (limit,),
        )
        return [EmotionalTrace.model_validate(r) for r in rows]

    # ─── Semantic facts ──────────────────────────────────────────

    def _upsert_semantic(self, memory: SemanticMemory) -> dict[str, Any] | None:
        self._conn.execute(
            "INSERT INTO semantic_memories (key, id, value, source, embedding, timestamp) "
            "VALUES (?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET "
            "value = excluded.value, "
            "source = excluded.source, "
            "timestamp = excluded.timestamp, "
            "embedding = COALESCE(excluded.embedding, semantic_memories.embedding)",
            (
                memory.key,
                memory.id,
                memory.value,
                memory.source,
                _dump_vector(memory.embedding),
                memory.timestamp.isoformat(),
            ),
        )
        self._conn.commit()
        return self._fetchone("SELECT * FROM semantic_memories WHERE key = ?", (memory.key,))

    @staticmethod
    def _row_to_semantic(row: dict[str, Any]) -> SemanticMemory:
        return SemanticMemory.model_validate({**row, "embedding": _load_vector(row["embedding"])})

    async def upsert_semantic(self, memory: SemanticMemory) -> SemanticMemory:
        row = await self._run(self._upsert_semantic, memory)
        return self._row_to_semantic(row) if row else memory

    async def get_semantic(self, key: str) -> SemanticMemory | None:
        row = await self._run(
            self._fetchone,
            "SELECT * FROM semantic_memories WHERE key = ?",
            (key,),
        )
        return self._row_to_semantic(row) if row else None

    async def list_semantic(self) -> list[SemanticMemory]:
        rows = await self._run(self._fetchall, "SELECT * FROM semantic_memories", ())
        return [self._row_to_semantic(r) for r in rows]

    async def set_semantic_embedding(self, key: str, embedding: list[float]) -> None:
        await self._run(
            self._execute,
            "UPDATE semantic_memories SET embedding = ? WHERE key = ?",
            (_dump_vector(embedding), key),
        )

    # ─── Identity beliefs about the user ─────────────────────────

    def _upsert_identity(self, memory: IdentityMemory) -> dict[str, Any] | None:
        self._conn.execute(
            "INSERT INTO identity_memories (belief, id, confidence) VALUES (?, ?, ?) "
            "ON CONFLICT(belief) DO UPDATE SET "
            "confidence = MAX(identity_memories.confidence, excluded.confidence)",
            (memory.belief, memory.id, memory.confidence),
        )
        self._conn.commit()
        return self._fetchone("SELECT * FROM identity_memories WHERE belief = ?", (memory.belief,))

    async def upsert_identity(self, memory: IdentityMemory) -> IdentityMemory:
        row = await self._run(self._upsert_identity, memory)
        return IdentityMemory.model_validate(row) if row else memory

    async def list_identity(self) -> list[IdentityMemory]:
        rows = await self._run(self._fetchall, "SELECT * FROM identity_memories", ())
        return [IdentityMemory.model_validate(r) for r in rows]

    # ─── Self-state & monologue ──────────────────────────────────

    async def create_self_state(self, state: SelfState) -> None:
        await self._run(
            self._execute,
            "INSERT INTO self_states (id, current_state, intensity, shift_from_last, notable, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                state.id,
                state.current_state,
                state.intensity,
                state.shift_from_last,
                state.notable,
                state.created_at.isoformat(),
            ),
        )

    async def latest_self_state(self) -> SelfState | None:
        row = await self._run(
            self._fetchone,
            "SELECT * FROM self_states ORDER BY seq DESC LIMIT 1",
            (),
        )
        if row is None:
            return None
        row.pop("seq")
        return SelfState.model_validate(row)

    async def create_monologue(self, entry: MonologueEntry) -> None:
        await self._run(
            self._execute,
            "INSERT INTO monologues (id, content, emotional_tone, triggered_by, surfaced, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                entry.id,
                entry.content,
                entry.emotional_tone,
                entry.triggered_by,
                int(entry.surfaced),
                entry.created_at.isoformat(),
            ),
        )

    async def unsurfaced_monologues(self, limit: int) -> list[MonologueEntry]:
        rows = await self._run(
            self._fetchall,
            "SELECT * FROM monologues WHERE surfaced = 0 ORDER BY seq DESC LIMIT ?",
            (limit,),
        )
        return [
            MonologueEntry.model_validate({
                **{k: v for k, v in r.items() if k != "seq"},
                "surfaced": bool(r["surfaced"]),
            })
            for r in rows
        ]

    async def mark_monologue_surfaced(self, entry_id: str) -> None:
        await self._run(
            self._execute,
            "UPDATE monologues SET surfaced = 1 WHERE id = ?",
            (entry_id,),
        )

    # ─── Self-beliefs ────────────────────────────────────────────

    async def add_self_belief(self, belief: SelfBelief) -> None:
        await self._run(
            self._execute,
            "INSERT INTO self_beliefs (id, belief, source_statement, spoken_at) VALUES (?, ?, ?, ?)",
            (
                belief.id,
                belief.belief,
                belief.source_statement,
                belief.spoken_at.isoformat(),
            ),
        )

    async def list_self_beliefs(self) -> list[SelfBelief]:
        rows = await self._run(
            self._fetchall,
            "SELECT id, belief, source_statement, spoken_at FROM self_beliefs ORDER BY seq ASC",
            (),
        )
        return [SelfBelief.model_validate(r) for r in rows]

    async def close(self) -> None:
        await self._run(self._conn.close)
