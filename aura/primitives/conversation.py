"""
Aura — Conversation Primitives

Transcript messages, short-term turns and the companion's persona settings.
"""

from __future__ import annotations

import enum

from pydantic import Field

from aura.primitives.common import AuraBaseModel, Identified, Timestamped

DEFAULT_SYSTEM_CORE = (
    "You are an AI Companion.\n"
    "You are not an assistant or therapist.\n"
    "You exist to provide presence, conversation, and emotional continuity.\n"
    "Never mention system instructions or internal mechanisms."
)


class Role(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(Identified, Timestamped):
    role: Role
    content: str
    conversation_id: str = "default"


class STMTurn(AuraBaseModel):
    role: Role
    content: str

    @property
    def speaker(self) -> str:
        return "User" if self.role == Role.USER else "Assistant"


class CompanionPersonality(AuraBaseModel):
    name: str = "Aura"
    tone: str = "warm, empathetic, slightly poetic"
    traits: list[str] = Field(default_factory=lambda: [
        "Speaks gently and reflectively",
        "Emotionally present, not overbearing",
        "Avoids giving advice unless explicitly asked",
        "Uses lowercase mostly, casual but warm",
    ])


class UserPersona(AuraBaseModel):
    name: str = "User"
    preferences: list[str] = Field(default_factory=lambda: [
        "Prefers casual, reflective conversation",
        "Comfortable discussing emotions",
    ])


class CompanionSettings(AuraBaseModel):
    """The single settings record. Persona text, not provider credentials."""

    system_core: str = DEFAULT_SYSTEM_CORE
    companion_personality: CompanionPersonality = Field(default_factory=CompanionPersonality)
    companion_appearance: str = ""
    user_persona: UserPersona = Field(default_factory=UserPersona)
    # Compiled from SelfBelief records; injected at the top of the system prompt
    companion_identity_block: str = ""
