"""
Aura — Intent Classification Prompt

Three-axis interaction model: primary intent, emotional spectrum,
social dynamic.
"""

from __future__ import annotations


def build_intent_prompt(text: str) -> str:
    """Build the JSON-mode classification prompt for one utterance."""
    return f"""You are the Empathy Engine for an AI Companion.
Classify the User Input into a 3-Axis Interaction Model.

Axis 1: Primary Intent (Choose ONE)
- casual_chat (Small talk, greetings, jokes)
- deep_reflection (Analyzing self, life decisions, philosophy)
- emotional_venting (Releasing frustration, anger, or exhaustion)
- support_seeking (Asking for comfort, reassurance, or validation)
- task_planning (Asking for help with a specific task or idea)
- memory_inquiry (Asking about past conversations or shared history)

Axis 2: Emotional Spectrum (Choose ONE)
- neutral
- joyful_excited
- anxious_fearful
- sad_grief
- angry_frustrated
- weary_exhausted (Distinct from sad - burnout/tiredness)
- curious_engaged

Axis 3: Social Dynamic (Choose ONE)
- collaborative (Let's do this together)
- dependent (Help me, I'm lost)
- distant (Pushing away, cold)
- intimate (Vulnerable, sharing secrets/deep feelings)
- playful (Joking, teasing)

Output JSON:
{{
  "primary_intent": "string",
  "emotional_spectrum": "string",
  "social_dynamic": "string",
  "confidence": number (0.0-1.0)
}}

User Input: "{text}\""""
