"""
Aura — Emotion System

Time decay and event-driven updates of the companion's emotion vector.
"""

from aura.systems.emotion.engine import EmotionEngine, next_mood, sensitivity_for

__all__ = ["EmotionEngine", "next_mood", "sensitivity_for"]
