"""
Aura — LLM Provider Abstraction

Every component that needs text generation uses this interface.
Supports Google Gemini, Mistral, OpenAI and local models via Ollama.

Providers differ in what they accept. Rather than branching on model names,
each provider carries ProviderCapabilities; ``generate_text`` folds the
system prompt into the prompt body when system-prompt injection is not
supported and drops the JSON-mode hint when JSON mode is not supported.

Calls are single-attempt. Recovery from failure is the caller's job
(keyword fallback, placeholder reply, discarded extraction).
"""

from __future__ import annotations

import contextlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from aura.errors import ProviderConfigurationError

if TYPE_CHECKING:
    from aura.config import LLMConfig

logger = structlog.get_logger()


class Message:
    """A chat message."""

    def __init__(self, role: str, content: str) -> None:
        self.role = role
        self.content = content

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class LLMResponse:
    """Response from an LLM call."""

    def __init__(
        self,
        text: str,
        model: str = "",
        input_tokens: int = 0,
        output_tokens: int = 0,
        finish_reason: str = "stop",
    ) -> None:
        self.text = text
        self.model = model
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.finish_reason = finish_reason


@dataclass(frozen=True)
class ProviderCapabilities:
    """What a provider/model accepts natively."""

    system_prompt: bool = True
    json_mode: bool = True


@dataclass
class GenerateOptions:
    system_prompt: str = ""
    temperature: float = 0.7
    max_tokens: int = 2000
    json_mode: bool = False


class LLMProvider(ABC):
    """Abstract interface for LLM calls."""

    name: str = "base"
    capabilities: ProviderCapabilities = ProviderCapabilities()

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        messages: list[Message],
        max_tokens: int = 2000,
        temperature: float = 0.7,
        output_format: str | None = None,
    ) -> LLMResponse:
        """Full generation call. ``output_format="json"`` requests JSON mode."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        ...

    def check_credentials(self) -> None:
        """Raise ProviderConfigurationError if the provider cannot be called."""
        return None

    async def generate_text(
        self,
        prompt: str,
        options: GenerateOptions | None = None,
    ) -> str:
        """
        Produce text from a single prompt, adapting the request to the
        provider's capabilities.
        """
        opts = options or GenerateOptions()
        system_prompt = opts.system_prompt
        body = prompt

        if system_prompt and not self.capabilities.system_prompt:
            body = f"{system_prompt}\n\n{prompt}"
            system_prompt = ""

        output_format = "json" if opts.json_mode and self.capabilities.json_mode else None

        response = await self.generate(
            system_prompt=system_prompt,
            messages=[Message("user", body)],
            max_tokens=opts.max_tokens,
            temperature=opts.temperature,
            output_format=output_format,
        )
        logger.debug(
            "llm_generated",
            provider=self.name,
            model=response.model,
            chars=len(response.text),
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            json_mode=output_format == "json",
        )
        return response.text


async def _post_json(
    client: httpx.AsyncClient,
    path: str,
    payload: dict[str, Any],
) -> dict[str, Any]:
    """Single-attempt POST. HTTP errors carry the provider's error body."""
    response = await client.post(path, json=payload)
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        body = ""
        with contextlib.suppress(Exception):
            body = exc.response.text[:500]
        raise httpx.HTTPStatusError(
            message=f"{exc.response.status_code}: {body}",
            request=exc.request,
            response=exc.response,
        ) from exc
    return response.json()  # type: ignore[no-any-return]


class GeminiProvider(LLMProvider):
    """Google Gemini via the Generative Language REST API."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_s: float = 60.0,
        capabilities: ProviderCapabilities | None = None,
    ) -> None:
        self._model = model
        self._api_key = api_key.strip()
        self.capabilities = capabilities or type(self).capabilities
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "x-goog-api-key": self._api_key,
                "Content-Type": "application/json",
            },
            timeout=timeout_s,
        )

    def check_credentials(self) -> None:
        if not self._api_key:
            raise ProviderConfigurationError("No Gemini API key configured")

    async def generate(
        self,
        system_prompt: str,
        messages: list[Message],
        max_tokens: int = 2000,
        temperature: float = 0.7,
        output_format: str | None = None,
    ) -> LLMResponse:
        generation_config: dict[str, Any] = {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        }
        if output_format == "json":
            generation_config["responseMimeType"] = "application/json"

        # Gemini names the assistant role "model"
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages
        ]
        payload: dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        data = await _post_json(self._client, f"/models/{self._model}:generateContent", payload)

        text = ""
        finish_reason = "stop"
        candidates = data.get("candidates", [])
        if candidates:
            for part in candidates[0].get("content", {}).get("parts", []):
                text += part.get("text", "")
            finish_reason = str(candidates[0].get("finishReason", "STOP")).lower()
        usage = data.get("usageMetadata", {})

        return LLMResponse(
            text=text,
            model=self._model,
            input_tokens=usage.get("promptTokenCount", 0),
            output_tokens=usage.get("candidatesTokenCount", 0),
            finish_reason=finish_reason,
        )

    async def close(self) -> None:
        await self._client.aclose()


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible chat completions API."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        timeout_s: float = 60.0,
        capabilities: ProviderCapabilities | None = None,
    ) -> None:
        self._model = model
        self._api_key = api_key.strip()
        self.capabilities = capabilities or type(self).capabilities
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout_s,
        )

    def check_credentials(self) -> None:
        if not self._api_key:
            raise ProviderConfigurationError(f"No {self.name.capitalize()} API key configured")
        if not self._model:
            raise ProviderConfigurationError(
                f"No {self.name.capitalize()} model configured — set llm.model"
            )

    async def generate(
        self,
        system_prompt: str,
        messages: list[Message],
        max_tokens: int = 2000,
        temperature: float = 0.7,
        output_format: str | None = None,
    ) -> LLMResponse:
        # System message travels inside the messages array
        all_messages: list[dict[str, str]] = []
        if system_prompt:
            all_messages.append({"role": "system", "content": system_prompt})
        for m in messages:
            content = m.content if m.content else " "  # empty content is rejected
            all_messages.append({"role": m.role, "content": content})

        payload: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": all_messages,
        }
        if output_format == "json":
            payload["response_format"] = {"type": "json_object"}

        data = await _post_json(self._client, "/chat/completions", payload)

        choices = data.get("choices", [])
        text = choices[0]["message"]["content"] if choices else ""
        usage = data.get("usage", {})

        return LLMResponse(
            text=text or "",
            model=data.get("model", self._model),
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            finish_reason=choices[0].get("finish_reason", "stop") if choices else "stop",
        )

    async def close(self) -> None:
        await self._client.aclose()


class MistralProvider(OpenAIProvider):
    """Mistral La Plateforme. Same wire shape as OpenAI chat completions."""

    name = "mistral"

    def __init__(
        self,
        api_key: str,
        model: str = "",
        base_url: str = "https://api.mistral.ai/v1",
        timeout_s: float = 60.0,
        capabilities: ProviderCapabilities | None = None,
    ) -> None:
        super().__init__(
            api_key=api_key,
            model=model,
            base_url=base_url,
            timeout_s=timeout_s,
            capabilities=capabilities,
        )


class OllamaProvider(LLMProvider):
    """Local model via Ollama."""

    name = "ollama"

    def __init__(
        self,
        model: str = "llama3.1:8b",
        endpoint: str = "http://localhost:11434",
        timeout_s: float = 120.0,
        capabilities: ProviderCapabilities | None = None,
    ) -> None:
        self._model = model
        self.capabilities = capabilities or type(self).capabilities
        self._client = httpx.AsyncClient(
            base_url=endpoint,
            timeout=timeout_s,
        )

    async def generate(
        self,
        system_prompt: str,
        messages: list[Message],
        max_tokens: int = 2000,
        temperature: float = 0.7,
        output_format: str | None = None,
    ) -> LLMResponse:
        all_messages: list[dict[str, str]] = []
        if system_prompt:
            all_messages.append({"role": "system", "content": system_prompt})
        all_messages.extend(m.to_dict() for m in messages)

        payload: dict[str, Any] = {
            "model": self._model,
            "messages": all_messages,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
        }
        if output_format == "json":
            payload["format"] = "json"

        data = await _post_json(self._client, "/api/chat", payload)

        return LLMResponse(
            text=data.get("message", {}).get("content", ""),
            model=self._model,
            input_tokens=data.get("prompt_eval_count", 0),
            output_tokens=data.get("eval_count", 0),
        )

    async def close(self) -> None:
        await self._client.aclose()


def _capabilities_for(
    config: LLMConfig,
    default: ProviderCapabilities,
) -> ProviderCapabilities:
    return ProviderCapabilities(
        system_prompt=(
            default.system_prompt
            if config.supports_system_prompt is None
            else config.supports_system_prompt
        ),
        json_mode=(
            default.json_mode
            if config.supports_json_mode is None
            else config.supports_json_mode
        ),
    )


def create_llm_provider(config: LLMConfig) -> LLMProvider:
    """
    Factory to create the configured LLM provider.

    Missing credentials do not fail here; they surface from
    ``check_credentials`` when a turn is attempted.
    """
    if config.provider == "gemini":
        return GeminiProvider(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url or "https://generativelanguage.googleapis.com/v1beta",
            timeout_s=config.timeout_s,
            capabilities=_capabilities_for(config, GeminiProvider.capabilities),
        )
    elif config.provider == "mistral":
        return MistralProvider(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url or "https://api.mistral.ai/v1",
            timeout_s=config.timeout_s,
            capabilities=_capabilities_for(config, MistralProvider.capabilities),
        )
    elif config.provider == "openai":
        return OpenAIProvider(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url or "https://api.openai.com/v1",
            timeout_s=config.timeout_s,
            capabilities=_capabilities_for(config, OpenAIProvider.capabilities),
        )
    elif config.provider == "ollama":
        return OllamaProvider(
            model=config.model,
            endpoint=config.base_url or "http://localhost:11434",
            timeout_s=config.timeout_s,
            capabilities=_capabilities_for(config, OllamaProvider.capabilities),
        )
    raise ProviderConfigurationError(f"Unknown LLM provider: {config.provider}")
