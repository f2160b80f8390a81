"""
Keyword-based routing classifier
"""

from .intent_classifier import IntentClassifier, classify  # noqa: F401
