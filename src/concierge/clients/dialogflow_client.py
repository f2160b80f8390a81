"""
Dialogflow Client
Dialogue-engine adapter: sends a message (plus the caller's auth flag) to a
Dialogflow ES agent and normalizes the query result.

Environment:
  DIALOGFLOW_PROJECT_ID          agent project (required)
  DIALOGFLOW_LANGUAGE_CODE       query language (default: en-US)
  GOOGLE_APPLICATION_CREDENTIALS service account used by the SDK
"""

import logging
from typing import Any, Dict, List, Optional

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import dialogflow_v2beta1 as dialogflow
from google.protobuf import struct_pb2

from concierge.config import Settings
from concierge.schemas.results import Category, NormalizedResult, Source
from .errors import AdapterError, BackendConfigError

logger = logging.getLogger("concierge.clients.dialogflow")

BACKEND = "dialogflow"
AUTH_CONTEXT_NAME = "authenticated"
AUTH_CONTEXT_LIFESPAN = 5
DEFAULT_REPLY = "I didn't catch that."
UNKNOWN_INTENT = "Unknown"


def session_path(project_id: str, session_id: str) -> str:
    return f"projects/{project_id}/agent/sessions/{session_id}"


def decode_value(value: struct_pb2.Value) -> Any:
    """
    Decode one protobuf Value by its kind tag.

    Only scalar kinds are carried through; null, list and struct values
    decode to None.
    """
    kind = value.WhichOneof("kind")
    if kind == "string_value":
        return value.string_value
    if kind == "number_value":
        return value.number_value
    if kind == "bool_value":
        return value.bool_value
    return None


def decode_payload(payload: struct_pb2.Struct) -> Dict[str, Any]:
    return {key: decode_value(value) for key, value in payload.fields.items()}


def build_detect_request(
    project_id: str,
    text: str,
    session_id: str,
    is_authenticated: bool,
    language_code: str = "en-US",
) -> dialogflow.DetectIntentRequest:
    """
    Build the detect-intent request.

    The auth flag travels twice: as a request-level payload field, and (when
    true) as an `authenticated` context that older webhook integrations read.
    """
    session = session_path(project_id, session_id)
    contexts = []
    if is_authenticated:
        contexts.append(
            dialogflow.Context(
                name=f"{session}/contexts/{AUTH_CONTEXT_NAME}",
                lifespan_count=AUTH_CONTEXT_LIFESPAN,
                parameters={"authenticated": True},
            )
        )
    return dialogflow.DetectIntentRequest(
        session=session,
        query_input=dialogflow.QueryInput(
            text=dialogflow.TextInput(text=text, language_code=language_code),
        ),
        query_params=dialogflow.QueryParameters(
            contexts=contexts,
            payload={"authenticated": bool(is_authenticated)},
        ),
    )


def normalize_query_result(query_result: Any) -> NormalizedResult:
    """
    Turn a raw (protobuf) QueryResult into a NormalizedResult.

    Picks the first non-empty quick-reply list and the first payload block
    among the fulfillment messages.
    """
    quick_replies: List[str] = []
    payload: Optional[Dict[str, Any]] = None

    for message in query_result.fulfillment_messages:
        if not quick_replies and message.HasField("quick_replies"):
            replies = [r for r in message.quick_replies.quick_replies if r]
            if replies:
                quick_replies = replies
        if payload is None and message.HasField("payload"):
            payload = decode_payload(message.payload)

    intent_name = UNKNOWN_INTENT
    if query_result.HasField("intent") and query_result.intent.display_name:
        intent_name = query_result.intent.display_name

    confidence = min(max(float(query_result.intent_detection_confidence or 0.0), 0.0), 1.0)

    return NormalizedResult(
        source=Source.DIALOGUE_ENGINE,
        category=Category.BANKING,
        text=query_result.fulfillment_text or DEFAULT_REPLY,
        intent=intent_name,
        confidence=confidence,
        quick_replies=quick_replies,
        payload=payload,
    )


class DialogflowAdapter:
    """
    Dialogue-engine adapter around the Dialogflow async sessions client.

    The SDK client is created lazily on first use unless one is injected,
    so the service can start without Google credentials.
    """

    def __init__(
        self,
        project_id: Optional[str],
        language_code: str = "en-US",
        timeout: float = 10.0,
        client: Optional[Any] = None,
    ):
        self.project_id = project_id
        self.language_code = language_code
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "DialogflowAdapter":
        return cls(
            project_id=settings.dialogflow_project_id,
            language_code=settings.dialogflow_language_code,
            timeout=settings.backend_timeout_seconds,
        )

    def _get_client(self) -> Any:
        if self._client is None:
            try:
                self._client = dialogflow.SessionsAsyncClient()
            except auth_exceptions.DefaultCredentialsError as exc:
                raise BackendConfigError(BACKEND, f"credentials not configured: {exc}") from exc
            logger.info("Dialogflow sessions client initialized for project %s", self.project_id)
        return self._client

    async def detect(self, text: str, session_id: str, is_authenticated: bool) -> NormalizedResult:
        if not self.project_id:
            raise BackendConfigError(BACKEND, "DIALOGFLOW_PROJECT_ID is not set")

        client = self._get_client()
        request = build_detect_request(
            self.project_id, text, session_id, is_authenticated, self.language_code
        )
        logger.info(
            "Dialogflow detect_intent session=%s authenticated=%s", session_id, is_authenticated
        )
        try:
            response = await client.detect_intent(request=request, timeout=self.timeout)
        except google_exceptions.GoogleAPIError as exc:
            logger.error("Dialogflow detect_intent failed session=%s: %s", session_id, exc)
            raise AdapterError(BACKEND, str(exc)) from exc

        try:
            raw_result = dialogflow.QueryResult.pb(response.query_result)
            result = normalize_query_result(raw_result)
        except (AttributeError, TypeError, ValueError) as exc:
            raise AdapterError(BACKEND, f"malformed response: {exc}") from exc

        logger.info(
            "Dialogflow result intent=%s confidence=%.2f quick_replies=%d payload=%s",
            result.intent,
            result.confidence,
            len(result.quick_replies),
            bool(result.payload),
        )
        return result
