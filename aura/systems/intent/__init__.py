"""
Aura — Intent System

Three-axis utterance classification with a deterministic keyword fallback.
"""

from aura.systems.intent.classifier import IntentClassifier, parse_classification
from aura.systems.intent.keywords import KEYWORD_RULES, classify_by_keywords

__all__ = [
    "IntentClassifier",
    "parse_classification",
    "KEYWORD_RULES",
    "classify_by_keywords",
]
