"""
Aura — Conversation State

Everything turn-scoped lives here, keyed by conversation id: the short-term
buffer, the first-turn flag, the session memory and the time of the last
turn. Turns on one conversation are serialised by its lock.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from aura.primitives.common import hours_between
from aura.primitives.conversation import Role, STMTurn
from aura.primitives.memory import SessionMemory

if TYPE_CHECKING:
    from aura.config import SessionConfig

logger = structlog.get_logger()


@dataclass
class Conversation:
    id: str
    stm: deque[STMTurn]
    is_first_turn: bool = True
    session: SessionMemory = field(default_factory=SessionMemory)
    last_turn_at: datetime | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @classmethod
    def new(cls, conversation_id: str, stm_capacity: int) -> Conversation:
        return cls(id=conversation_id, stm=deque(maxlen=stm_capacity))

    def remember(self, role: Role, content: str) -> None:
        """Append to the short-term buffer; the oldest turn falls off at capacity."""
        self.stm.append(STMTurn(role=role, content=content))

    def recent_turns(self) -> list[STMTurn]:
        return list(self.stm)

    def session_expired(self, now: datetime, idle_timeout_hours: float | None) -> bool:
        if idle_timeout_hours is None or self.last_turn_at is None:
            return False
        return hours_between(self.last_turn_at, now) >= idle_timeout_hours

    def reset_session(self) -> None:
        self.session = SessionMemory()
        self.stm.clear()


class ConversationRegistry:
    def __init__(self, config: SessionConfig) -> None:
        self._config = config
        self._conversations: dict[str, Conversation] = {}

    def get(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            conversation = Conversation.new(conversation_id, self._config.stm_capacity)
            self._conversations[conversation_id] = conversation
            logger.debug("conversation_opened", conversation_id=conversation_id)
        return conversation

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)
