"""
Aura — Structured Output Parsing

Model JSON output is never trusted. Parsing is single-shot: strip
markdown fences, try the text, then try the outermost ``{...}`` span.
Anything else raises MalformedOutputError and the caller falls back.
"""

from __future__ import annotations

import json
import re
from typing import Any

from aura.errors import MalformedOutputError

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text)
        text = _FENCE_CLOSE.sub("", text)
    return text.strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse model output into a JSON object or raise MalformedOutputError."""
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise MalformedOutputError("empty output")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start < 0 or end <= start:
            raise MalformedOutputError(f"no JSON object in output: {cleaned[:80]!r}") from None
        try:
            data = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as exc:
            raise MalformedOutputError(f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedOutputError(f"expected a JSON object, got {type(data).__name__}")
    return data
