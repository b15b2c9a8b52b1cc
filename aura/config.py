"""
Aura — Configuration System

All configuration is Pydantic-validated and loaded from:
1. default.yaml (defaults)
2. Environment variables (overrides)

Every tunable rate, threshold and window of the turn pipeline lives here.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ─── Sub-configs ──────────────────────────────────────────────────


class LLMConfig(BaseModel):
    provider: str = "gemini"  # "gemini" | "mistral" | "openai" | "ollama"
    model: str = "gemini-2.5-flash"
    api_key: str = ""
    base_url: str | None = None
    timeout_s: float = 60.0
    # Capability overrides. None means "use the provider's default".
    # Some models (e.g. Gemma served through Gemini) take neither.
    supports_system_prompt: bool | None = None
    supports_json_mode: bool | None = None

    @model_validator(mode="after")
    def _strip_api_key(self) -> LLMConfig:
        # Secret managers can inject trailing \r\n into env vars
        if self.api_key:
            object.__setattr__(self, "api_key", self.api_key.strip())
        return self


class EmbeddingConfig(BaseModel):
    strategy: str = "provider"  # "provider" | "mock" | "none"
    model: str | None = None    # None → provider default
    api_key: str = ""           # empty → reuse llm.api_key
    dimension: int = 256        # mock strategy only


class IntentConfig(BaseModel):
    classification_timeout_s: float = 10.0
    temperature: float = 0.2


class EmotionConfig(BaseModel):
    decay_rate_per_hour: float = 0.014          # 1.0 → 0.5 in ~36h
    min_decay_hours: float = 0.1                # below this, skip decay entirely
    mood_reset_hours: float = 24.0
    social_battery_recharge_per_hour: float = 0.1
    irritation_decay_per_hour: float = 0.2
    curiosity_drift_per_hour: float = 0.05
    timezone_offset_hours: int = 7
    night_start_hour: int = 23
    night_end_hour: int = 7
    sleepy_threshold: float = 0.7
    irritation_block_threshold: float = 0.6
    low_battery_threshold: float = 0.2


class SessionConfig(BaseModel):
    # Idle gap after which a conversation's session memory starts over.
    # None disables expiry.
    idle_timeout_hours: float | None = 6.0
    stm_capacity: int = 6
    restore_history_messages: int = 10


class MemoryConfig(BaseModel):
    episodic_threshold: float = 0.7
    high_weight_threshold: float = 0.9
    promotable_emotions: list[str] = Field(
        default_factory=lambda: ["low", "positive", "curious_engaged", "joyful_excited"]
    )
    trace_intents: list[str] = Field(
        default_factory=lambda: ["support_seeking", "emotional_venting"]
    )
    trace_seed_confidence: float = 0.3
    trace_confidence_increment: float = 0.1
    retrieval_episodic_limit: int = 5
    retrieval_trace_limit: int = 5
    extraction_enabled: bool = True


class ContextConfig(BaseModel):
    max_episodic: int = 3
    max_traces: int = 2
    max_semantic: int = 12
    max_identity: int = 8
    similarity_weight: float = 0.6
    decay_window_days: dict[str, float] = Field(
        default_factory=lambda: {"slow": 30.0, "normal": 7.0, "fast": 2.0}
    )
    weight_bonus: dict[str, float] = Field(
        default_factory=lambda: {"high": 0.4, "medium": 0.2, "low": 0.0}
    )
    loneliness_thresholds_hours: tuple[float, float, float] = (2.0, 8.0, 24.0)
    attachment_halving_threshold: float = 0.7


class ReflectionConfig(BaseModel):
    # "auto": JSON envelope when the provider supports JSON mode, else tags.
    # "delimited": always scrape [SELF_STATE] blocks.
    self_state_mode: str = "delimited"
    monologue_limit: int = 3
    monologue_history_messages: int = 10
    heartbeat_interval_minutes: float = 30.0


class StorageConfig(BaseModel):
    backend: str = "memory"  # "memory" | "sqlite"
    path: str = "data/aura.db"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"


# ─── Root Configuration ──────────────────────────────────────────


class AuraConfig(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="AURA_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    companion_id: str = "aura-default"

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    intent: IntentConfig = Field(default_factory=IntentConfig)
    emotion: EmotionConfig = Field(default_factory=EmotionConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    reflection: ReflectionConfig = Field(default_factory=ReflectionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AuraConfig:
    """
    Load configuration from YAML file, then apply environment variable overrides.
    """
    raw: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}

    # Inject secrets from environment
    if llm_key := os.environ.get("AURA_LLM_API_KEY"):
        raw.setdefault("llm", {})["api_key"] = llm_key
    if llm_provider := os.environ.get("AURA_LLM__PROVIDER"):
        raw.setdefault("llm", {})["provider"] = llm_provider
    if llm_model := os.environ.get("AURA_LLM__MODEL"):
        raw.setdefault("llm", {})["model"] = llm_model
    if embedding_key := os.environ.get("AURA_EMBEDDING_API_KEY"):
        raw.setdefault("embedding", {})["api_key"] = embedding_key
    if storage_path := os.environ.get("AURA_STORAGE__PATH"):
        raw.setdefault("storage", {})["path"] = storage_path
    if companion_id := os.environ.get("AURA_COMPANION_ID"):
        raw["companion_id"] = companion_id

    if overrides:
        raw = _deep_merge(raw, overrides)

    return AuraConfig(**raw)
