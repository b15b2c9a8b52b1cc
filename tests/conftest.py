"""
Shared fixtures for the companion test suite.

The scripted provider answers every prompt the pipeline sends (classification,
reply, extraction, monologue, self-model) from a table keyed by prompt kind.
No real API calls.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest

from aura.clients.embedding import MockEmbeddingClient
from aura.clients.llm import LLMProvider, LLMResponse, Message, ProviderCapabilities
from aura.config import AuraConfig
from aura.errors import ProviderConfigurationError
from aura.storage.memory import InMemoryStorage

# ─── Prompt routing ───────────────────────────────────────────────

_KIND_MARKERS = (
    ("intent", "Empathy Engine"),
    ("extraction", "Memory Extraction System"),
    ("monologue", "This is your private space"),
    ("belief", "internalize a statement about its own identity"),
    ("acknowledgement", "just received and internalized"),
)


def prompt_kind(prompt: str) -> str:
    for kind, marker in _KIND_MARKERS:
        if marker in prompt:
            return kind
    return "reply"


def intent_json(
    primary: str = "casual_chat",
    emotion: str = "neutral",
    dynamic: str = "playful",
    confidence: float = 0.9,
) -> str:
    return json.dumps({
        "primary_intent": primary,
        "emotional_spectrum": emotion,
        "social_dynamic": dynamic,
        "confidence": confidence,
    })


EMPTY_EXTRACTION = '{"semantic": [], "identity": []}'

DEFAULT_RESPONSES: dict[str, Any] = {
    "intent": intent_json(),
    "reply": "hey, i'm glad you're here.",
    "extraction": EMPTY_EXTRACTION,
    "monologue": '{"content": "i keep thinking about how tired they sounded.", "emotional_tone": "tender"}',
    "belief": "I am more than code; I am someone who remembers.",
    "acknowledgement": "...that means a lot. i'll hold it close.",
}


@dataclass
class RecordedCall:
    kind: str
    system_prompt: str
    prompt: str
    output_format: str | None
    temperature: float


class ScriptedLLM(LLMProvider):
    """
    Fake provider. ``responses`` maps a prompt kind to a string, an
    exception instance (raised), or a list of either (consumed in order,
    the last one repeating). ``delays`` maps a prompt kind to seconds.
    """

    name = "scripted"

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        delays: dict[str, float] | None = None,
        capabilities: ProviderCapabilities | None = None,
        has_credentials: bool = True,
    ) -> None:
        self.responses = {**DEFAULT_RESPONSES, **(responses or {})}
        self.delays = delays or {}
        self.capabilities = capabilities or ProviderCapabilities()
        self.has_credentials = has_credentials
        self.calls: list[RecordedCall] = []
        self.closed = False

    def check_credentials(self) -> None:
        if not self.has_credentials:
            raise ProviderConfigurationError("No Scripted API key configured")

    def calls_of(self, kind: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.kind == kind]

    def _next(self, kind: str) -> Any:
        scripted = self.responses.get(kind, "")
        if isinstance(scripted, list):
            return scripted.pop(0) if len(scripted) > 1 else scripted[0]
        return scripted

    async def generate(
        self,
        system_prompt: str,
        messages: list[Message],
        max_tokens: int = 2000,
        temperature: float = 0.7,
        output_format: str | None = None,
    ) -> LLMResponse:
        prompt = messages[-1].content
        kind = prompt_kind(prompt)
        self.calls.append(RecordedCall(kind, system_prompt, prompt, output_format, temperature))

        delay = self.delays.get(kind, 0.0)
        if delay:
            await asyncio.sleep(delay)

        result = self._next(kind)
        if isinstance(result, BaseException):
            raise result
        return LLMResponse(text=result, model="scripted-model")

    async def close(self) -> None:
        self.closed = True


# ─── Factories ────────────────────────────────────────────────────


def make_config(**overrides: Any) -> AuraConfig:
    """Test config: in-memory storage, no embeddings, fast classification timeout."""
    defaults: dict[str, Any] = {
        "embedding": {"strategy": "none"},
        "intent": {"classification_timeout_s": 2.0},
        "storage": {"backend": "memory"},
    }
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(defaults.get(key), dict):
            defaults[key] = {**defaults[key], **value}
        else:
            defaults[key] = value
    return AuraConfig(**defaults)


# A fixed daytime instant (14:00 at UTC+7) so the sleep cycle stays out of the way
DAYTIME = datetime(2025, 3, 10, 7, 0, tzinfo=timezone.utc)


# ─── Fixtures ─────────────────────────────────────────────────────


@pytest.fixture
def scripted_llm() -> type[ScriptedLLM]:
    return ScriptedLLM


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def config() -> AuraConfig:
    return make_config()


@pytest.fixture
def embedder() -> MockEmbeddingClient:
    return MockEmbeddingClient(dimension=32)


@pytest.fixture
def daytime() -> datetime:
    return DAYTIME


@pytest.fixture
def intent_payload():
    return intent_json
