"""
concierge/app.py

FastAPI application for the SecureBank concierge
Routes chat traffic to the dialogue engine, intent service or knowledge
search, and serves the Dialogflow fulfillment webhook and the mock bank.
"""

import uuid
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from concierge.config import load_settings
from concierge.logging_config import get_logger, setup_logging

setup_logging()

logger = get_logger("concierge.app")

from concierge.agent.fulfillment import FulfillmentHandler, parse_webhook_request
from concierge.agent.orchestrator import ConversationOrchestrator
from concierge.banking.mock_data import MOCK_CREDENTIALS
from concierge.banking.service import BankingService
from concierge.banking.utils import ACCOUNT_TYPES, format_currency
from concierge.clients.dialogflow_client import DialogflowAdapter
from concierge.clients.kendra_client import KendraAdapter
from concierge.clients.lex_client import LexAdapter
from concierge.clients.mock_bank_client import MockBankClient
from concierge.context.session_manager import SessionManager
from concierge.guards import RateLimiter, sanitize_input
from concierge.schemas.api_models import (
    ChatRequest,
    ChatResponse,
    LoginRequest,
    LogoutRequest,
    QuickReplyButton,
    TransferRequest,
)

CONNECTION_ERROR_TEXT = "I'm having trouble connecting to my services right now."

# display label -> text sent back when the button is pressed
QUICK_REPLY_MAP: Dict[str, str] = {
    "Check Balance": "Check my balance",
    "Transfer Funds": "Transfer funds",
    "Transaction History": "Show my transaction history",
    "Talk to Agent": "Chat with agent",
    "Chat with Agent": "Chat with agent",
    "Hours": "What are your hours?",
    "Locations": "Where are you located?",
    "Routing number": "What is my routing number?",
    "Routing Number": "What is my routing number?",
    "Contact info": "How can I reach customer service?",
    "Contact Us": "How can I reach customer service?",
    "Main Menu": "Main menu",
}


def build_quick_reply_buttons(quick_replies: List[str]) -> List[QuickReplyButton]:
    return [QuickReplyButton(display=q, payload=QUICK_REPLY_MAP.get(q, q)) for q in quick_replies]


app = FastAPI(title="SecureBank Concierge", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """
    Startup wiring:
     - Load settings and warn about missing backend configuration
     - Build the backend adapters and the orchestrator
     - Build the banking collaborator (HTTP client when BANKING_API_BASE_URL
       is set, in-process service otherwise) and the fulfillment handler

    Anything already present on app.state is left in place.
    """
    state = app.state
    if getattr(state, "settings", None) is None:
        state.settings = load_settings()
    settings = state.settings

    for name in settings.missing_backend_settings():
        logger.warning("Startup: %s is not set; the dependent backend will fail when called", name)

    if getattr(state, "session_manager", None) is None:
        state.session_manager = SessionManager(session_timeout_minutes=settings.session_timeout_minutes)
    if getattr(state, "bank_service", None) is None:
        state.bank_service = BankingService()
    if getattr(state, "banking", None) is None:
        if settings.banking_api_base_url:
            state.banking = MockBankClient(
                base_url=settings.banking_api_base_url,
                api_token=settings.mock_api_token,
                timeout=settings.backend_timeout_seconds,
            )
            logger.info("Startup: fulfillment banking via HTTP at %s", settings.banking_api_base_url)
        else:
            state.banking = state.bank_service
    if getattr(state, "fulfillment", None) is None:
        state.fulfillment = FulfillmentHandler(state.banking)
    if getattr(state, "orchestrator", None) is None:
        state.orchestrator = ConversationOrchestrator.from_settings(
            settings,
            dialogue=DialogflowAdapter.from_settings(settings),
            intents=LexAdapter.from_settings(settings),
            search=KendraAdapter.from_settings(settings),
        )
    if getattr(state, "chat_limiter", None) is None:
        state.chat_limiter = RateLimiter(settings.chat_rate_limit_per_minute, 60)
    if getattr(state, "login_limiter", None) is None:
        state.login_limiter = RateLimiter(settings.login_rate_limit_per_minute, 60)

    logger.info(
        "Concierge started. miss_threshold=%.2f search_confidence=%.2f",
        settings.intent_miss_threshold,
        settings.search_confidence,
    )


@app.on_event("shutdown")
async def shutdown_event():
    banking = getattr(app.state, "banking", None)
    if isinstance(banking, MockBankClient):
        try:
            await banking.close()
        except Exception as e:
            logger.exception("Error closing banking client: %s", e)
    logger.info("Concierge shutdown complete.")


def _require_api_token(authorization: Optional[str]) -> None:
    expected = f"Bearer {app.state.settings.mock_api_token}"
    if not authorization or authorization != expected:
        raise HTTPException(status_code=401, detail="Unauthorized")


def _client_ip(request: Request) -> str:
    # First hop of X-Forwarded-For is the original client behind a proxy
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@app.get("/")
async def root():
    return {"message": "SecureBank Concierge API", "status": "running"}


@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}


@app.post("/api/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, request: Request) -> ChatResponse:
    """
    Route one chat message and return the merged reply.

    Backend failures are reported as a bot message with error=True rather
    than an HTTP error, so the chat window always has something to show.
    Requests without a session id are rate limited per client address.
    """
    settings = app.state.settings
    text = sanitize_input(req.text, settings.max_message_length)
    if not text:
        raise HTTPException(status_code=400, detail="Message text is required")

    limit_key = req.session_id or f"client:{_client_ip(request)}"
    if not app.state.chat_limiter.allow(limit_key):
        raise HTTPException(status_code=429, detail="Too many messages. Please slow down.")

    session_id = req.session_id or str(uuid.uuid4())

    session_manager: SessionManager = app.state.session_manager
    session_manager.ensure_session(session_id)
    is_authenticated = session_manager.is_authenticated(session_id)
    session_manager.add_history_message(session_id, "user", text)

    logger.info("API Request: POST /api/chat | session_id=%s auth=%s", session_id, is_authenticated)

    try:
        result = await app.state.orchestrator.route_request(text, session_id, is_authenticated)
    except Exception as e:
        logger.exception("Routing failed for session %s: %s", session_id, e)
        session_manager.add_history_message(session_id, "assistant", CONNECTION_ERROR_TEXT)
        return ChatResponse(
            text=CONNECTION_ERROR_TEXT,
            session_id=session_id,
            authenticated=is_authenticated,
            error=True,
        )

    session_manager.add_history_message(session_id, "assistant", result.text)
    logger.info(
        "Chat result: source=%s intent=%s confidence=%.2f",
        result.source.value,
        result.intent,
        result.confidence,
    )
    return ChatResponse(
        source=result.source.value,
        category=result.category.value,
        text=result.text,
        intent=result.intent,
        confidence=result.confidence,
        quick_replies=result.quick_replies,
        quick_reply_buttons=build_quick_reply_buttons(result.quick_replies),
        payload=result.payload,
        sources=[c.model_dump() for c in result.sources],
        session_id=session_id,
        authenticated=is_authenticated,
    )


@app.post("/api/dialogflow/webhook")
async def dialogflow_webhook(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid webhook request")

    intent_name, parameters, contexts = parse_webhook_request(body)
    logger.info("API Request: POST /api/dialogflow/webhook | intent=%s", intent_name)
    response = await app.state.fulfillment.handle_intent(intent_name, parameters, contexts)
    return response.to_webhook_response()


@app.get("/api/banking/accounts")
async def banking_accounts(authorization: Optional[str] = Header(default=None)) -> Dict[str, Any]:
    _require_api_token(authorization)
    accounts = await app.state.bank_service.get_accounts()
    return {"success": True, "data": {"accounts": [a.model_dump() for a in accounts]}}


@app.get("/api/banking/transactions")
async def banking_transactions(
    limit: int = 5,
    account_id: Optional[str] = None,
    authorization: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    _require_api_token(authorization)
    transactions = await app.state.bank_service.get_transactions(account_id=account_id, limit=limit)
    return {"success": True, "data": {"transactions": [t.model_dump() for t in transactions]}}


@app.post("/api/banking/transfer")
async def banking_transfer(
    req: TransferRequest,
    authorization: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    _require_api_token(authorization)

    if not req.from_account or not req.to_account or not req.amount:
        raise HTTPException(status_code=400, detail="Missing required fields: fromAccount, toAccount, amount")
    if req.from_account not in ACCOUNT_TYPES or req.to_account not in ACCOUNT_TYPES:
        raise HTTPException(status_code=400, detail='Invalid account type. Must be "checking" or "savings"')
    if req.from_account == req.to_account:
        raise HTTPException(status_code=400, detail="Cannot transfer to the same account")

    result = await app.state.bank_service.process_transfer(req.from_account, req.to_account, req.amount)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    return {
        "success": True,
        "data": result.data.model_dump(),
        "message": (
            f"Successfully transferred {format_currency(req.amount)} "
            f"from {req.from_account} to {req.to_account}"
        ),
    }


@app.post("/api/auth/login")
async def login_user(request: LoginRequest) -> Dict[str, Any]:
    """
    Mock login: checks the demo credential pair and marks the session
    authenticated.
    """
    username = sanitize_input(request.username, 254).lower()
    logger.info("API Request: POST /api/auth/login | username=%s session_id=%s", username, request.session_id)

    if not app.state.login_limiter.allow(username or request.session_id):
        raise HTTPException(status_code=429, detail="Too many login attempts. Please try again later.")

    if username != MOCK_CREDENTIALS["username"] or request.password != MOCK_CREDENTIALS["password"]:
        logger.warning("Login: invalid credentials for %s", username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    app.state.session_manager.mark_authenticated(request.session_id, username)
    return {
        "status": "ok",
        "user": {"username": username},
        "session_id": request.session_id,
    }


@app.post("/api/auth/logout")
async def logout(req: LogoutRequest):
    logger.info("API Request: POST /api/auth/logout | session_id=%s", req.session_id)
    app.state.session_manager.clear_authentication(req.session_id)
    return {"status": "ok"}


@app.get("/api/session/me")
async def session_me(session_id: str) -> Dict[str, Any]:
    """
    Return the authenticated user (if any) for a given session_id.
    """
    sess = app.state.session_manager.get_session(session_id)
    if not sess or not sess.get("is_authenticated"):
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": {"username": sess.get("username")}}
