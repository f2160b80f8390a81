"""
agent/fulfillment.py

FulfillmentHandler:
- Resolves a Dialogflow intent into a reply for the webhook.
- Guards the banking intents behind the `authenticated` context.
- Decides, per intent, whether the active contexts are cleared or left
  alone (a half-filled transfer must survive into the next turn).

Input contexts are never modified; every branch returns its own output
list.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from concierge.banking.utils import counterpart_account, format_currency, normalize_account
from .contexts import DialogContext, clear_contexts, is_authenticated


logger = logging.getLogger("agent")

PROTECTED_INTENTS = frozenset({"check.balance", "transfer.funds", "transaction.history"})

STANDARD_QUICK_REPLIES = [
    "Check Balance",
    "Transfer Funds",
    "Transaction History",
    "Talk to Agent",
    "Hours",
    "Locations",
    "Routing number",
    "Contact info",
]
TRANSFER_PROMPT_QUICK_REPLIES = ["$50", "$100", "$500", "To Savings", "To Checking"]

REQUIRE_AUTH = "REQUIRE_AUTH"
TRANSFER_AGENT = "TRANSFER_AGENT"

AUTH_REQUIRED_TEXT = "I need to verify your identity first. Please authenticate to continue."
WELCOME_TEXT = (
    "Welcome to SecureBank! I can help you check balances, transfer funds, or view recent transactions."
)
TRANSFER_MISSING_TEXT = "I need a bit more info. Please specify the amount and the account."
SAME_ACCOUNT_TEXT = "You cannot transfer to the same account. Please specify different accounts."
NO_TRANSACTIONS_TEXT = "No recent transactions found."
AGENT_TEXT = "Connecting you to a live agent now..."
FALLBACK_TEXT = "I missed that. I can help with account balances, transfers, or transaction history."
HELP_TEXT = "I can help you check balances, transfer funds, or view recent transactions."
ERROR_TEXT = "I apologize, but I encountered an error processing your request. Please try again."

HISTORY_LIMIT = 5


@dataclass(frozen=True)
class FulfillmentResponse:
    text: str
    output_contexts: List[DialogContext]
    quick_replies: List[str] = field(default_factory=list)
    payload_action: Optional[str] = None
    payload_message: Optional[str] = None
    # False when the branch leaves the dialogue state exactly as it was
    contexts_changed: bool = True

    def to_webhook_response(self) -> Dict[str, Any]:
        messages: List[Dict[str, Any]] = [{"text": {"text": [self.text]}}]
        if self.quick_replies:
            messages.append({"quickReplies": {"quickReplies": list(self.quick_replies)}})
        if self.payload_action:
            messages.append(
                {
                    "platform": "PLATFORM_UNSPECIFIED",
                    "payload": {"action": self.payload_action, "message": self.payload_message or ""},
                }
            )
        response: Dict[str, Any] = {"fulfillmentText": self.text, "fulfillmentMessages": messages}
        if self.contexts_changed:
            response["outputContexts"] = [c.to_webhook() for c in self.output_contexts]
        return response


@dataclass(frozen=True)
class BankingContext:
    from_account: Optional[str] = None
    to_account: Optional[str] = None
    amount: Optional[float] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.amount) and bool(self.from_account) and bool(self.to_account)


def extract_amount(raw: Any) -> Optional[float]:
    """
    Parse a transfer amount.

    Accepts numbers, strings with currency symbols/commas ("$1,200.50"), and
    Dialogflow currency objects ({"amount": 100, "currency": "USD"}).
    Non-numeric, non-finite and non-positive values give None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, dict):
        return extract_amount(raw.get("amount"))
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        cleaned = re.sub(r"[$,\s]", "", raw)
        try:
            value = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(value) or math.isinf(value) or value <= 0:
        return None
    return value


def resolve_transfer(parameters: Dict[str, Any]) -> BankingContext:
    """
    Build the transfer slots from webhook parameters, inferring a missing
    account as the complement of the known one.
    """
    amount = extract_amount(parameters.get("amount"))
    from_account = normalize_account(parameters.get("fromAccount"))
    to_account = normalize_account(parameters.get("toAccount"))

    if from_account is None and to_account is not None:
        from_account = counterpart_account(to_account)
        logger.info("Transfer: inferred fromAccount=%s", from_account)
    elif from_account is not None and to_account is None:
        to_account = counterpart_account(from_account)
        logger.info("Transfer: inferred toAccount=%s", to_account)

    return BankingContext(from_account=from_account, to_account=to_account, amount=amount)


def parse_webhook_request(body: Dict[str, Any]) -> Tuple[str, Dict[str, Any], List[DialogContext]]:
    """
    Pull (intent display name, parameters, active contexts) out of a
    Dialogflow ES WebhookRequest body.

    Fields of the wrong JSON type are read as empty rather than rejected.
    """
    query_result = body.get("queryResult")
    if not isinstance(query_result, dict):
        query_result = {}
    intent = query_result.get("intent")
    intent_name = intent.get("displayName") if isinstance(intent, dict) else None
    parameters = query_result.get("parameters")
    raw_contexts = query_result.get("outputContexts")
    if not isinstance(raw_contexts, list):
        raw_contexts = []

    contexts = [DialogContext.from_webhook(c) for c in raw_contexts if isinstance(c, dict)]
    return (
        intent_name if isinstance(intent_name, str) else "",
        dict(parameters) if isinstance(parameters, dict) else {},
        contexts,
    )


class FulfillmentHandler:
    def __init__(self, banking: Any) -> None:
        self.banking = banking
        self._handlers = {
            "Default Welcome Intent": self._welcome,
            "Welcome": self._welcome,
            "check.balance": self._check_balance,
            "transfer.funds": self._transfer_funds,
            "transaction.history": self._transaction_history,
            "request.agent": self._request_agent,
            "Default Fallback Intent": self._fallback,
        }

    async def handle_intent(
        self,
        intent_name: str,
        parameters: Optional[Dict[str, Any]],
        contexts: Sequence[DialogContext],
    ) -> FulfillmentResponse:
        contexts = tuple(contexts or ())
        parameters = dict(parameters or {})
        logger.info(
            "FULFILLMENT: intent=%s params=%s contexts=%s",
            intent_name,
            parameters,
            [(c.short_name, c.lifespan_count) for c in contexts],
        )

        try:
            if intent_name in PROTECTED_INTENTS and not is_authenticated(contexts):
                logger.info("FULFILLMENT: %s requires auth; preserving contexts", intent_name)
                return FulfillmentResponse(
                    text=AUTH_REQUIRED_TEXT,
                    output_contexts=list(contexts),
                    payload_action=REQUIRE_AUTH,
                    payload_message="Please authenticate to proceed",
                    contexts_changed=False,
                )

            handler = self._handlers.get(intent_name)
            if handler is None:
                # FAQ / knowledge intents are stateless
                logger.info("FULFILLMENT: stateless intent %s", intent_name)
                return FulfillmentResponse(
                    text=HELP_TEXT,
                    output_contexts=list(contexts),
                    quick_replies=list(STANDARD_QUICK_REPLIES),
                    contexts_changed=False,
                )
            return await handler(parameters, contexts)
        except Exception as e:
            logger.exception("FULFILLMENT: error handling intent %s: %s", intent_name, e)
            return FulfillmentResponse(
                text=ERROR_TEXT,
                output_contexts=clear_contexts(contexts),
                quick_replies=list(STANDARD_QUICK_REPLIES),
            )

    async def _welcome(self, parameters, contexts) -> FulfillmentResponse:
        return FulfillmentResponse(
            text=WELCOME_TEXT,
            output_contexts=clear_contexts(contexts),
            quick_replies=list(STANDARD_QUICK_REPLIES),
        )

    async def _check_balance(self, parameters, contexts) -> FulfillmentResponse:
        accounts = await self.banking.get_accounts()
        checking = next((a for a in accounts if a.type == "checking"), None)
        savings = next((a for a in accounts if a.type == "savings"), None)

        text = (
            "Here are your balances:\n\n"
            f"Checking {checking.account_number if checking else ''}: "
            f"{format_currency(checking.balance if checking else 0)}\n"
            f"Savings {savings.account_number if savings else ''}: "
            f"{format_currency(savings.balance if savings else 0)}"
        )
        return FulfillmentResponse(
            text=text,
            output_contexts=clear_contexts(contexts),
            quick_replies=list(STANDARD_QUICK_REPLIES),
        )

    async def _transfer_funds(self, parameters, contexts) -> FulfillmentResponse:
        slots = resolve_transfer(parameters)
        logger.info(
            "Transfer parameters: raw_amount=%r amount=%s from=%s to=%s",
            parameters.get("amount"),
            slots.amount,
            slots.from_account,
            slots.to_account,
        )

        if not slots.is_complete:
            # Keep the slot-filling contexts alive for the next turn
            return FulfillmentResponse(
                text=TRANSFER_MISSING_TEXT,
                output_contexts=list(contexts),
                quick_replies=list(TRANSFER_PROMPT_QUICK_REPLIES),
                contexts_changed=False,
            )

        if slots.from_account == slots.to_account:
            logger.info("Transfer: same account rejected (%s)", slots.from_account)
            return FulfillmentResponse(
                text=SAME_ACCOUNT_TEXT,
                output_contexts=clear_contexts(contexts),
                quick_replies=["To Savings", "To Checking", "Check Balance"],
            )

        result = await self.banking.process_transfer(slots.from_account, slots.to_account, slots.amount)
        if result.success:
            text = (
                f"Transfer complete! Moved {format_currency(slots.amount)} "
                f"from {slots.from_account} to {slots.to_account}."
            )
            return FulfillmentResponse(
                text=text,
                output_contexts=clear_contexts(contexts),
                quick_replies=list(STANDARD_QUICK_REPLIES),
            )

        logger.info("Transfer failed: %s", result.error)
        return FulfillmentResponse(
            text=f"Transfer failed: {result.error}",
            output_contexts=clear_contexts(contexts),
            quick_replies=["Check Balance", "Try Again"],
        )

    async def _transaction_history(self, parameters, contexts) -> FulfillmentResponse:
        transactions = await self.banking.get_transactions(limit=HISTORY_LIMIT)
        if not transactions:
            text = NO_TRANSACTIONS_TEXT
        else:
            lines = [
                f"{i}. {t.date} - {t.description} ({format_currency(t.amount)})"
                for i, t in enumerate(transactions[:HISTORY_LIMIT], start=1)
            ]
            text = "Recent transactions:\n\n" + "\n".join(lines)
        return FulfillmentResponse(
            text=text,
            output_contexts=clear_contexts(contexts),
            quick_replies=list(STANDARD_QUICK_REPLIES),
        )

    async def _request_agent(self, parameters, contexts) -> FulfillmentResponse:
        return FulfillmentResponse(
            text=AGENT_TEXT,
            output_contexts=clear_contexts(contexts),
            payload_action=TRANSFER_AGENT,
            payload_message="Connecting...",
        )

    async def _fallback(self, parameters, contexts) -> FulfillmentResponse:
        # Always clear here so a stuck slot-filling flow can recover
        return FulfillmentResponse(
            text=FALLBACK_TEXT,
            output_contexts=clear_contexts(contexts),
            quick_replies=list(STANDARD_QUICK_REPLIES),
        )
