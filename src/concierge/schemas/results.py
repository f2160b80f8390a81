"""
Result shapes shared by the backend adapters and the orchestrator.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Source(str, Enum):
    DIALOGUE_ENGINE = "DialogueEngine"
    INTENT_SERVICE = "IntentService"
    KNOWLEDGE_SEARCH = "KnowledgeSearch"


class Category(str, Enum):
    BANKING = "BANKING"
    SUPPORT = "SUPPORT"
    GENERAL = "GENERAL"
    SEARCH = "SEARCH"


class ConfidenceTier(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Citation(BaseModel):
    title: str
    uri: str
    excerpt: str = ""


class NormalizedResult(BaseModel):
    """
    The single reply shape every routing path produces.

    confidence is validated into [0.0, 1.0]; quick_replies and sources are
    always lists, empty when the backend supplied nothing.
    """

    source: Source
    category: Category
    text: str = Field(min_length=1)
    intent: str
    confidence: float = Field(ge=0.0, le=1.0)
    quick_replies: List[str] = Field(default_factory=list)
    payload: Optional[Dict[str, Any]] = None
    sources: List[Citation] = Field(default_factory=list)


class IntentResult(BaseModel):
    text: str
    intent: str
    confidence: float = 0.0
    quick_replies: List[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    text: str
    sources: List[Citation] = Field(default_factory=list)
    confidence_tier: ConfidenceTier = ConfidenceTier.LOW
