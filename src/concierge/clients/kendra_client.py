"""
Kendra Client
Knowledge-search adapter over an Amazon Kendra index.

Environment:
  AWS_REGION, KENDRA_INDEX_ID (required)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from concierge.config import Settings
from concierge.schemas.results import Citation, ConfidenceTier, SearchResult
from .errors import AdapterError, BackendConfigError

logger = logging.getLogger("concierge.clients.kendra")

BACKEND = "kendra"
PAGE_SIZE = 3
ANSWER_TYPES = ("QUESTION_ANSWER", "ANSWER")
DEFAULT_ANSWER_TEXT = "I found some relevant information:"
DEFAULT_DOCUMENT_TITLE = "SecureBank Document"
NO_RESULTS_TEXT = (
    "I searched our knowledge base but couldn't find a specific answer. "
    "Would you like to speak to an agent?"
)


def _answer_text(item: Dict[str, Any]) -> Optional[str]:
    attributes = item.get("AdditionalAttributes") or []
    if not attributes:
        return None
    value = (attributes[0] or {}).get("Value") or {}
    return (value.get("TextWithHighlightsValue") or {}).get("Text") or None


def normalize_query_response(response: Dict[str, Any]) -> SearchResult:
    """
    Normalize a Kendra Query response into answer text, citations and a tier.

    HIGH: a direct answer item is present. MEDIUM: only documents.
    LOW: nothing, in which case the reply steers the user to an agent.
    """
    items = response.get("ResultItems") or []

    answer_item = next((i for i in items if i.get("Type") in ANSWER_TYPES), None)

    sources: List[Citation] = [
        Citation(
            title=(item.get("DocumentTitle") or {}).get("Text") or DEFAULT_DOCUMENT_TITLE,
            uri=item.get("DocumentURI") or "#",
            excerpt=(item.get("DocumentExcerpt") or {}).get("Text") or "",
        )
        for item in items
        if item.get("Type") == "DOCUMENT"
    ]

    if answer_item is None and not sources:
        return SearchResult(text=NO_RESULTS_TEXT, sources=[], confidence_tier=ConfidenceTier.LOW)

    text = DEFAULT_ANSWER_TEXT
    if answer_item is not None:
        text = _answer_text(answer_item) or DEFAULT_ANSWER_TEXT
        tier = ConfidenceTier.HIGH
    else:
        tier = ConfidenceTier.MEDIUM

    return SearchResult(text=text, sources=sources, confidence_tier=tier)


class KendraAdapter:
    def __init__(
        self,
        index_id: Optional[str],
        region: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[Any] = None,
    ):
        self.index_id = index_id
        self.region = region
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "KendraAdapter":
        return cls(
            index_id=settings.kendra_index_id,
            region=settings.aws_region,
            timeout=settings.backend_timeout_seconds,
        )

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.region:
                raise BackendConfigError(BACKEND, "AWS_REGION is not set")
            self._client = boto3.client(
                "kendra",
                region_name=self.region,
                config=Config(connect_timeout=self.timeout, read_timeout=self.timeout, retries={"max_attempts": 0}),
            )
            logger.info("Kendra client initialized (region=%s)", self.region)
        return self._client

    async def search(self, text: str) -> SearchResult:
        if not self.index_id:
            raise BackendConfigError(BACKEND, "KENDRA_INDEX_ID is not set")

        client = self._get_client()

        def _call_kendra() -> Dict[str, Any]:
            return client.query(IndexId=self.index_id, QueryText=text, PageSize=PAGE_SIZE)

        logger.info("Kendra query (len=%d chars)", len(text or ""))
        try:
            response = await asyncio.to_thread(_call_kendra)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Kendra query failed: %s", exc)
            raise AdapterError(BACKEND, str(exc)) from exc

        try:
            result = normalize_query_response(response)
        except (AttributeError, TypeError, ValueError) as exc:
            raise AdapterError(BACKEND, f"malformed response: {exc}") from exc

        logger.info(
            "Kendra result tier=%s sources=%d", result.confidence_tier.value, len(result.sources)
        )
        return result
