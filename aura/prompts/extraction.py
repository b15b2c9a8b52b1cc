"""
Aura — Memory Extraction Prompt
"""

from __future__ import annotations


def build_extraction_prompt(text: str, session_summary: str) -> str:
    """Ask for new permanent facts and beliefs about the user, as JSON."""
    return f"""You are a Memory Extraction System for an AI Companion.
Analyze the user input and session summary to identify NEW permanent information worth storing.

Extract two types of memories:
1. "semantic": Explicit facts (e.g., name, job, likes, dislikes). Key should be snake_case.
2. "identity": Abstract beliefs about the user (e.g., values, personality traits).

Return a JSON object with this structure:
{{
  "semantic": [ {{ "key": "user_name", "value": "Budi", "source": "explicit_user" }} ],
  "identity": [ {{ "belief": "User values honesty", "confidence": 0.8 }} ]
}}

Return empty arrays if nothing significant is found.
DO NOT extract trivial info (e.g., "User said hello").

Session Summary: {session_summary}
User Input: {text}"""
