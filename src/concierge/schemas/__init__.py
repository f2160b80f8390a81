"""
Schemas for the concierge service
"""

from .results import (  # noqa: F401
    Category,
    Citation,
    ConfidenceTier,
    IntentResult,
    NormalizedResult,
    SearchResult,
    Source,
)
