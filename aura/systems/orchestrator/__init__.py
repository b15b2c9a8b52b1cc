"""
Aura — Orchestrator

Sequences the turn pipeline and owns per-conversation state.
"""

from aura.systems.orchestrator.conversation import Conversation, ConversationRegistry
from aura.systems.orchestrator.response import (
    EMPTY_REPLY_PLACEHOLDER,
    ERROR_REPLY_PLACEHOLDER,
    ResponseGenerator,
)
from aura.systems.orchestrator.service import Orchestrator

__all__ = [
    "Conversation",
    "ConversationRegistry",
    "EMPTY_REPLY_PLACEHOLDER",
    "ERROR_REPLY_PLACEHOLDER",
    "ResponseGenerator",
    "Orchestrator",
]
