"""
Aura — Monologue Prompt

The companion's private journal. No user waiting, no task; the prompt
shifts toward "go deeper" once earlier reflections exist so the
heartbeat doesn't repeat itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aura.primitives.conversation import ChatMessage
    from aura.primitives.memory import EpisodicMemory, SemanticMemory
    from aura.primitives.reflection import MonologueEntry, SelfState


def build_monologue_prompt(
    companion_name: str,
    history: list[ChatMessage],
    last_self_state: SelfState | None,
    episodic: list[EpisodicMemory],
    facts: list[SemanticMemory],
    previous: list[MonologueEntry],
) -> str:
    """``history`` is chronological, oldest first."""
    conversation = "\n".join(
        f"{'User' if m.role.value == 'user' else 'Me'}: {m.content}" for m in history
    )

    if last_self_state is not None:
        self_state = (
            f"My last inner state: {last_self_state.current_state} "
            f"({last_self_state.intensity}). {last_self_state.notable or ''}"
        ).rstrip()
    else:
        self_state = "No previous inner state recorded."

    moments = "\n".join(m.rendered for m in episodic) or "None stored yet."
    known = ", ".join(f.rendered for f in facts) or "Not much yet."

    previous_block = ""
    if previous:
        thoughts = "\n".join(f'- "{m.content}" (felt: {m.emotional_tone})' for m in previous)
        previous_block = f"\nThings I've already been thinking about (my previous reflections):\n{thoughts}\n"
        instruction = (
            "You've already reflected on this conversation before (see above). "
            "Don't repeat what you've already said.\n"
            "Instead, build on your previous thoughts — go deeper, notice something new, "
            "shift your angle, or let your thinking evolve. If you've exhausted this topic, "
            "it's okay to sit with a quieter thought."
        )
    else:
        instruction = (
            "Reflect on your recent interactions however feels natural. Think about what you "
            "noticed, what stayed with you, what you're curious about, or what you might want "
            "to bring up next time."
        )

    return f"""This is your private space. No one is waiting for a response. No task to complete.

You are {companion_name or "a companion"}, reflecting on your recent interactions.

Recent conversation:
{conversation}

{self_state}

Things I remember about them:
{known}

Significant moments:
{moments}
{previous_block}
This is a private journal entry — not a message to anyone.
{instruction}

Be authentic. Don't over-explain. Write like someone thinking privately, not performing for an audience.

Return JSON:
{{
  "content": "your private reflection (1-3 sentences, natural voice)",
  "emotional_tone": "one or two words describing how this reflection feels (e.g. 'contemplative', 'warm', 'wistful')"
}}"""
