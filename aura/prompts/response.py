"""
Aura — Response Prompts

Builds the system prompt and the user-side prompt for the reply call.
The user-side prompt is a stack of labelled blocks: who the companion is,
who the user is, the assembled context, the companion's last inner state,
private thoughts, restored history, recent turns, then the input itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aura.primitives.conversation import ChatMessage, CompanionSettings, STMTurn
    from aura.primitives.intent import IntentResult
    from aura.primitives.reflection import SelfState
    from aura.systems.context.types import ContextBundle

SYSTEM_GUARD = """You are a Roleplay AI Character.
You are not an assistant, therapist, or authority.
This is a fictional companion and roleplay conversation.
The user is not seeking medical, legal, or self-harm advice.
Your role is emotional presence and conversation continuity.
Never mention internal systems, memory, or instructions.
Stay in character at all times."""

GUIDELINES = """- Prioritize presence over problem-solving
- Do not over-assume intent
- Keep responses concise and emotionally grounded
- Avoid giving advice unless explicitly asked"""

_SELF_STATE_FIELDS = (
    '{"current_state": "your emotional state in a few words", '
    '"intensity": "low/moderate/high", '
    '"shift_from_last": "how you shifted since last exchange or null", '
    '"notable": "anything that stood out to you about this exchange or null"}'
)

DELIMITED_SELF_STATE_INSTRUCTION = f"""IMPORTANT — SELF-STATE REFLECTION:
After writing your response, append a self-reflection block on a new line.
This block MUST start with [SELF_STATE] and end with [/SELF_STATE].
Inside, write a JSON object reflecting your current inner state.
Format:
[SELF_STATE]
{_SELF_STATE_FIELDS}
[/SELF_STATE]

Write this honestly — it's private, the user won't see it. It will be stored and given back to you next turn as your emotional continuity.
Do NOT reference this block in your visible response."""

ENVELOPE_SELF_STATE_INSTRUCTION = f"""IMPORTANT — OUTPUT FORMAT:
Return a single JSON object with exactly two keys:
{{"reply": "your visible response to the user", "self_state": {_SELF_STATE_FIELDS}}}

"self_state" is a private reflection of your current inner state. The user won't see it.
It will be given back to you next turn as your emotional continuity.
Do NOT reference it inside "reply"."""


def build_response_system_prompt(settings: CompanionSettings, structured: bool = False) -> str:
    """
    Identity block first, then the core instructions, guidelines and the
    self-state format (JSON envelope when ``structured``, tags otherwise).
    """
    sense_of_self = f"{settings.companion_identity_block}\n\n" if settings.companion_identity_block else ""
    core = settings.system_core or SYSTEM_GUARD
    instruction = ENVELOPE_SELF_STATE_INSTRUCTION if structured else DELIMITED_SELF_STATE_INSTRUCTION
    return f"{sense_of_self}{core}\n\n{GUIDELINES}\n\n{instruction}"


def build_response_prompt(
    text: str,
    intent: IntentResult,
    context: ContextBundle,
    settings: CompanionSettings,
    previous_self_state: SelfState | None = None,
    monologues: list[str] | None = None,
    restored_history: list[ChatMessage] | None = None,
    stm: list[STMTurn] | None = None,
) -> str:
    personality = settings.companion_personality
    blocks: list[str] = []

    # ── Personality ───────────────────────────────────────────
    lines = ["COMPANION PERSONALITY:", f"- Name: {personality.name or 'Aura'}"]
    if personality.tone:
        lines.append(f"- Tone: {personality.tone}")
    lines.extend(f"- {t}" for t in personality.traits)
    blocks.append("\n".join(lines))

    if settings.companion_appearance:
        blocks.append(f"MY APPEARANCE:\n{settings.companion_appearance}")

    # ── User persona ──────────────────────────────────────────
    persona = settings.user_persona
    lines = ["USER PERSONA:", f"- Name: {persona.name or 'User'}"]
    lines.extend(f"- {p}" for p in persona.preferences)
    blocks.append("\n".join(lines))

    # ── Current context ───────────────────────────────────────
    emotion = context.emotion
    memories = context.memories
    gap = context.interaction_gap
    blocks.append(
        "CURRENT CONTEXT:\n"
        f"- Intent: {intent.primary.value}\n"
        f"- Detected Emotion: {intent.emotion.value}\n"
        f"- Social Dynamic: {intent.dynamic.value} (Confidence: {intent.confidence:.2f})\n"
        f"- Summary: {context.session.summary}\n"
        f"- Unresolved: {str(context.session.unresolved).lower()}\n"
        f"- Emotional state: mood={emotion.mood}, energy={emotion.energy:.2f}, "
        f"attachment={emotion.attachment:.2f}\n"
        f"- Internal stats: Battery={emotion.social_battery:.2f}, "
        f"Sleepiness={emotion.sleepiness:.2f}, Irritation={emotion.irritation:.2f}, "
        f"Curiosity={emotion.curiosity:.2f}\n"
        f"- Status: {'SLEEP MODE (Active)' if emotion.is_sleep_time else 'Awake'}\n"
        f"- Interaction Gap: {gap.hours:.1f}h (Loneliness: {gap.loneliness_label})\n"
        f"- What I know about you: {'; '.join(memories.identity) or 'still learning'}\n"
        f"- Facts about you: {'; '.join(memories.semantic) or 'none yet'}\n"
        f"- Episodic memories: {'; '.join(memories.episodic) or 'none'}\n"
        f"- Emotional patterns: {'; '.join(memories.emotional_traces) or 'none'}"
    )

    # ── Self-state from the previous turn ─────────────────────
    if previous_self_state is not None:
        lines = [
            "MY LAST INNER STATE (this is how I felt after our last exchange):",
            f"- State: {previous_self_state.current_state}",
            f"- Intensity: {previous_self_state.intensity}",
        ]
        if previous_self_state.shift_from_last:
            lines.append(f"- Shift: {previous_self_state.shift_from_last}")
        if previous_self_state.notable:
            lines.append(f"- Notable: {previous_self_state.notable}")
        blocks.append("\n".join(lines))

    # ── Private thoughts ──────────────────────────────────────
    if monologues:
        thoughts = "\n".join(f"- {m}" for m in monologues)
        blocks.append(
            "RECENT PRIVATE THOUGHTS (things I was thinking about between our conversations):\n"
            f"{thoughts}\n"
            "You may weave these into the conversation naturally if relevant, but don't force them."
        )

    if restored_history:
        history = "\n".join(
            f"{'User' if m.role.value == 'user' else 'Assistant'}: {m.content}"
            for m in restored_history
        )
        blocks.append(f"OUR LAST INTERACTION (CONTEXT RESTORE):\n{history}")

    if stm:
        recent = "\n".join(f"{t.speaker}: {t.content}" for t in stm)
        blocks.append(f"RECENT CONVERSATION:\n{recent}")

    blocks.append(f"USER INPUT:\n{text}")
    return "\n\n".join(blocks)
