"""
agent/orchestrator.py

ConversationOrchestrator:
- Classifies each message and picks the backend that answers it.
- Banking traffic goes to the dialogue engine, which owns the multi-turn
  banking flows; it is never failed over.
- Everything else goes to the intent service, and falls over to knowledge
  search when the intent service misses.

Adapter calls run one after another. Adapter errors are not caught here;
the HTTP layer decides what the user sees.
"""

import logging
from typing import Any, Optional

from concierge.nlu.intent_classifier import IntentClassifier
from concierge.schemas.results import Category, NormalizedResult, Source


logger = logging.getLogger("agent")

KNOWLEDGE_SEARCH_INTENT = "KnowledgeSearch"
SEARCH_QUICK_REPLIES = ["Talk to Agent", "Main Menu"]


class ConversationOrchestrator:
    def __init__(
        self,
        dialogue: Any,
        intents: Any,
        search: Any,
        classifier: Optional[IntentClassifier] = None,
        miss_threshold: float = 0.60,
        search_confidence: float = 0.9,
        fallback_intent: str = "FallbackIntent",
    ) -> None:
        self.dialogue = dialogue
        self.intents = intents
        self.search = search
        self.classifier = classifier or IntentClassifier()
        self.miss_threshold = miss_threshold
        self.search_confidence = search_confidence
        self.fallback_intent = fallback_intent

    @classmethod
    def from_settings(cls, settings: Any, dialogue: Any, intents: Any, search: Any) -> "ConversationOrchestrator":
        return cls(
            dialogue=dialogue,
            intents=intents,
            search=search,
            miss_threshold=settings.intent_miss_threshold,
            search_confidence=settings.search_confidence,
            fallback_intent=settings.lex_fallback_intent,
        )

    def is_miss(self, intent: str, confidence: float) -> bool:
        return intent == self.fallback_intent or confidence < self.miss_threshold

    async def route_request(self, text: str, session_id: str, is_authenticated: bool) -> NormalizedResult:
        category = self.classifier.classify(text)
        logger.info("ROUTE: session=%s category=%s auth=%s", session_id, category.value, is_authenticated)

        if category == Category.BANKING:
            result = await self.dialogue.detect(text, session_id, is_authenticated)
            logger.info(
                "ROUTE: dialogue engine -> intent=%s confidence=%.2f", result.intent, result.confidence
            )
            return result.model_copy(update={"source": Source.DIALOGUE_ENGINE, "category": Category.BANKING})

        intent_result = await self.intents.recognize(text, session_id)
        logger.info(
            "ROUTE: intent service -> intent=%s confidence=%.2f",
            intent_result.intent,
            intent_result.confidence,
        )

        if not self.is_miss(intent_result.intent, intent_result.confidence):
            return NormalizedResult(
                source=Source.INTENT_SERVICE,
                category=category,
                text=intent_result.text,
                intent=intent_result.intent,
                confidence=min(max(intent_result.confidence, 0.0), 1.0),
                quick_replies=list(intent_result.quick_replies),
                payload=None,
                sources=[],
            )

        logger.info(
            "ROUTE: intent miss (threshold=%.2f); falling back to knowledge search", self.miss_threshold
        )
        search_result = await self.search.search(text)
        logger.info(
            "ROUTE: knowledge search -> tier=%s sources=%d",
            search_result.confidence_tier.value,
            len(search_result.sources),
        )
        return NormalizedResult(
            source=Source.KNOWLEDGE_SEARCH,
            category=Category.SEARCH,
            text=search_result.text,
            intent=KNOWLEDGE_SEARCH_INTENT,
            confidence=self.search_confidence,
            quick_replies=list(SEARCH_QUICK_REPLIES),
            payload=None,
            sources=list(search_result.sources),
        )
