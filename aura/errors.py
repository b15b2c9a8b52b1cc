"""
Aura — Error Hierarchy

All exceptions raised inside the turn pipeline.

Severity guide:
  ProviderConfigurationError  USER-VISIBLE -- raised before a turn runs
  GenerationError             RECOVERED    -- replaced by an in-character placeholder
  MalformedOutputError        RECOVERED    -- the malformed piece is discarded
"""

from __future__ import annotations


class AuraError(RuntimeError):
    """Base for all companion pipeline errors."""


class ProviderConfigurationError(AuraError):
    """
    A generation or embedding provider cannot be used as configured.

    Missing API key, missing model name, or an unknown provider id.
    Surfaced to the user; the turn is not started.
    """


class GenerationError(AuraError):
    """The generation provider returned nothing usable."""


class MalformedOutputError(AuraError, ValueError):
    """
    Structured model output (classification, self-state, monologue,
    extraction) could not be parsed into the expected shape.
    """
