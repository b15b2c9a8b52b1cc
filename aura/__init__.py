"""
Aura — Companion Turn Pipeline

Deterministic per-turn reasoning for a persistent conversational companion:
intent, emotion, memory, context, reflection, response.
"""

__version__ = "0.3.0"
