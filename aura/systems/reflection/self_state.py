"""
Aura — Self-State Parsing

The companion reports its inner state alongside every reply, either as a
JSON envelope ``{"reply": ..., "self_state": {...}}`` (providers with JSON
mode) or as a trailing ``[SELF_STATE] {...} [/SELF_STATE]`` block.

Delimited blocks:
  - every well-formed block is stripped from the visible reply
  - the last block is the one parsed
  - a dangling opening tag strips everything after it
  - a stray closing tag is removed

A malformed self-state never fails the turn: the visible reply is kept
and no self-state is produced.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import structlog

from aura.clients.output import parse_json_object
from aura.errors import MalformedOutputError
from aura.primitives.reflection import SelfState

logger = structlog.get_logger()

OPEN_TAG = "[SELF_STATE]"
CLOSE_TAG = "[/SELF_STATE]"
_BLOCK = re.compile(r"\[SELF_STATE\]\s*([\s\S]*?)\s*\[/SELF_STATE\]")


@dataclass
class ParsedReply:
    visible: str
    self_state: SelfState | None = None


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none"):
        return None
    return text


def self_state_from_dict(data: Any) -> SelfState:
    if not isinstance(data, dict):
        raise MalformedOutputError("self_state must be an object")
    current = data.get("current_state")
    intensity = data.get("intensity")
    if not isinstance(current, str) or not current.strip():
        raise MalformedOutputError("self_state.current_state missing")
    if not isinstance(intensity, str) or not intensity.strip():
        raise MalformedOutputError("self_state.intensity missing")
    return SelfState(
        current_state=current.strip(),
        intensity=intensity.strip(),
        shift_from_last=_optional_text(data.get("shift_from_last")),
        notable=_optional_text(data.get("notable")),
    )


def parse_delimited(raw: str) -> ParsedReply:
    blocks = _BLOCK.findall(raw)
    visible = _BLOCK.sub("", raw)

    dangling = visible.find(OPEN_TAG)
    if dangling >= 0:
        visible = visible[:dangling]
    visible = visible.replace(CLOSE_TAG, "").strip()

    if not blocks:
        return ParsedReply(visible=visible)

    try:
        state = self_state_from_dict(parse_json_object(blocks[-1]))
    except MalformedOutputError as exc:
        logger.warning("self_state_malformed", error=str(exc), blocks=len(blocks))
        return ParsedReply(visible=visible)
    return ParsedReply(visible=visible, self_state=state)


def parse_envelope(raw: str) -> ParsedReply | None:
    """JSON envelope, or None when the output isn't one."""
    try:
        data = parse_json_object(raw)
    except MalformedOutputError:
        return None
    reply = data.get("reply")
    if not isinstance(reply, str):
        return None

    # A model may still append a delimited block inside the reply text
    parsed = parse_delimited(reply)
    if "self_state" in data and data["self_state"] is not None:
        try:
            parsed.self_state = self_state_from_dict(data["self_state"])
        except MalformedOutputError as exc:
            logger.warning("self_state_malformed", error=str(exc), envelope=True)
    return parsed


def parse_self_state(raw: str, structured: bool = False) -> ParsedReply:
    """
    Split raw model output into the visible reply and the self-state.
    ``structured`` tries the JSON envelope first.
    """
    if structured:
        parsed = parse_envelope(raw)
        if parsed is not None:
            return parsed
        logger.debug("self_state_envelope_fallback")
    return parse_delimited(raw)
