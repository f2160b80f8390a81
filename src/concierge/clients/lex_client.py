"""
Lex Client
Intent-recognition adapter over the Amazon Lex V2 runtime.

Environment:
  AWS_REGION, LEX_BOT_ID, LEX_BOT_ALIAS_ID (required)
  LEX_LOCALE_ID        (default: en_US)
  LEX_FALLBACK_INTENT  (default: FallbackIntent)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from concierge.config import Settings
from concierge.schemas.results import IntentResult
from .errors import AdapterError, BackendConfigError

logger = logging.getLogger("concierge.clients.lex")

BACKEND = "lex"
DEFAULT_REPLY = "I'm not sure how to help with that."
DEFAULT_QUICK_REPLIES = ["Account info", "Fees", "Hours"]


def normalize_recognize_response(
    response: Dict[str, Any], fallback_intent: str = "FallbackIntent"
) -> IntentResult:
    """
    Normalize a RecognizeText response.

    Text and quick replies come from the first message; when it carries no
    response-card buttons the fixed default menu is offered instead.
    """
    messages = response.get("messages") or []
    text = DEFAULT_REPLY
    quick_replies: List[str] = []

    if messages:
        first = messages[0] or {}
        text = first.get("content") or DEFAULT_REPLY
        card = first.get("imageResponseCard") or {}
        quick_replies = [b.get("text") or "" for b in card.get("buttons") or []]

    if not quick_replies:
        quick_replies = list(DEFAULT_QUICK_REPLIES)

    intent = ((response.get("sessionState") or {}).get("intent") or {}).get("name") or fallback_intent

    confidence = 0.0
    interpretations = response.get("interpretations") or []
    if interpretations:
        score = ((interpretations[0] or {}).get("nluConfidence") or {}).get("score")
        if score is not None:
            confidence = min(max(float(score), 0.0), 1.0)

    return IntentResult(text=text, intent=intent, confidence=confidence, quick_replies=quick_replies)


class LexAdapter:
    def __init__(
        self,
        bot_id: Optional[str],
        bot_alias_id: Optional[str],
        locale_id: str = "en_US",
        region: Optional[str] = None,
        fallback_intent: str = "FallbackIntent",
        timeout: float = 10.0,
        client: Optional[Any] = None,
    ):
        self.bot_id = bot_id
        self.bot_alias_id = bot_alias_id
        self.locale_id = locale_id
        self.region = region
        self.fallback_intent = fallback_intent
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "LexAdapter":
        return cls(
            bot_id=settings.lex_bot_id,
            bot_alias_id=settings.lex_bot_alias_id,
            locale_id=settings.lex_locale_id,
            region=settings.aws_region,
            fallback_intent=settings.lex_fallback_intent,
            timeout=settings.backend_timeout_seconds,
        )

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.region:
                raise BackendConfigError(BACKEND, "AWS_REGION is not set")
            self._client = boto3.client(
                "lexv2-runtime",
                region_name=self.region,
                config=Config(connect_timeout=self.timeout, read_timeout=self.timeout, retries={"max_attempts": 0}),
            )
            logger.info("Lex runtime client initialized (region=%s)", self.region)
        return self._client

    async def recognize(self, text: str, session_id: str) -> IntentResult:
        if not self.bot_id or not self.bot_alias_id:
            raise BackendConfigError(BACKEND, "LEX_BOT_ID / LEX_BOT_ALIAS_ID are not set")

        client = self._get_client()

        def _call_lex() -> Dict[str, Any]:
            return client.recognize_text(
                botId=self.bot_id,
                botAliasId=self.bot_alias_id,
                localeId=self.locale_id,
                sessionId=session_id,
                text=text,
            )

        logger.info("Lex recognize_text session=%s", session_id)
        try:
            response = await asyncio.to_thread(_call_lex)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Lex recognize_text failed session=%s: %s", session_id, exc)
            raise AdapterError(BACKEND, str(exc)) from exc

        try:
            result = normalize_recognize_response(response, self.fallback_intent)
        except (AttributeError, TypeError, ValueError) as exc:
            raise AdapterError(BACKEND, f"malformed response: {exc}") from exc

        logger.info("Lex result intent=%s confidence=%.2f", result.intent, result.confidence)
        return result
