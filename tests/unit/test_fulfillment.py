"""
Unit tests for the Dialogflow fulfillment handler.

The banking collaborator is either the real in-process BankingService or an
AsyncMock when a call must be observed or forced to fail.
"""

import math

import pytest
from unittest.mock import AsyncMock, MagicMock

from concierge.agent.fulfillment import (
    AUTH_REQUIRED_TEXT,
    ERROR_TEXT,
    FALLBACK_TEXT,
    HELP_TEXT,
    NO_TRANSACTIONS_TEXT,
    STANDARD_QUICK_REPLIES,
    TRANSFER_MISSING_TEXT,
    FulfillmentHandler,
    extract_amount,
    parse_webhook_request,
    resolve_transfer,
)
from concierge.banking.models import TransferData, TransferResult
from concierge.banking.service import BankingService


@pytest.fixture
def handler():
    return FulfillmentHandler(BankingService())


@pytest.fixture
def spy_banking():
    banking = MagicMock()
    banking.process_transfer = AsyncMock(
        return_value=TransferResult(
            success=True,
            data=TransferData(
                from_account="checking",
                to_account="savings",
                amount=1200.5,
                new_from_balance=4231.6,
                new_to_balance=13743.5,
                transaction_id="txn-1",
            ),
        )
    )
    banking.get_accounts = AsyncMock(return_value=[])
    banking.get_transactions = AsyncMock(return_value=[])
    return banking


class TestExtractAmount:
    @pytest.mark.parametrize("raw,expected", [
        (50, 50.0),
        (12.5, 12.5),
        ("$1,200.50", 1200.5),
        (" 75 ", 75.0),
        ({"amount": 100, "currency": "USD"}, 100.0),
        ({"amount": {"amount": "$20"}}, 20.0),
    ])
    def test_accepted(self, raw, expected):
        assert extract_amount(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "fifty", 0, -5, "-$3", True, [], {"currency": "USD"}, math.nan, math.inf])
    def test_rejected(self, raw):
        assert extract_amount(raw) is None


class TestResolveTransfer:
    def test_infers_destination(self):
        slots = resolve_transfer({"amount": "$1,200.50", "fromAccount": "checking account"})
        assert (slots.from_account, slots.to_account, slots.amount) == ("checking", "savings", 1200.5)

    def test_infers_source(self):
        slots = resolve_transfer({"amount": 10, "toAccount": "Checking"})
        assert (slots.from_account, slots.to_account) == ("savings", "checking")

    def test_entity_objects_unwrapped(self):
        slots = resolve_transfer({"amount": 40, "fromAccount": {"stringValue": "Savings"}})
        assert (slots.from_account, slots.to_account, slots.amount) == ("savings", "checking", 40.0)

    def test_nothing_to_infer_from(self):
        slots = resolve_transfer({"amount": 10})
        assert slots.from_account is None and slots.to_account is None
        assert not slots.is_complete


class TestAuthGuard:
    """Protected intents without the auth context never touch the bank."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("intent", ["check.balance", "transfer.funds", "transaction.history"])
    async def test_protected_intents_require_auth(self, spy_banking, transfer_context, intent):
        handler = FulfillmentHandler(spy_banking)

        response = await handler.handle_intent(intent, {"amount": 50}, [transfer_context])

        assert response.text == AUTH_REQUIRED_TEXT
        assert response.payload_action == "REQUIRE_AUTH"
        assert response.contexts_changed is False
        assert response.output_contexts == [transfer_context]
        spy_banking.process_transfer.assert_not_awaited()
        spy_banking.get_accounts.assert_not_awaited()
        assert "outputContexts" not in response.to_webhook_response()


class TestIntents:
    @pytest.mark.asyncio
    async def test_welcome_clears_but_keeps_auth(self, handler, auth_context, transfer_context):
        response = await handler.handle_intent("Default Welcome Intent", {}, [auth_context, transfer_context])

        assert response.text.startswith("Welcome to SecureBank!")
        assert response.quick_replies == STANDARD_QUICK_REPLIES
        lifespans = {c.short_name: c.lifespan_count for c in response.output_contexts}
        assert lifespans == {"authenticated": 5, "transfer-followup": 0}

    @pytest.mark.asyncio
    async def test_check_balance(self, handler, auth_context):
        response = await handler.handle_intent("check.balance", {}, [auth_context])

        assert response.text == (
            "Here are your balances:\n\n"
            "Checking ****4521: $5,432.10\n"
            "Savings ****7892: $12,543.00"
        )
        assert response.contexts_changed is True

    @pytest.mark.asyncio
    async def test_transfer_with_inference(self, spy_banking, auth_context):
        handler = FulfillmentHandler(spy_banking)

        response = await handler.handle_intent(
            "transfer.funds", {"amount": "$1,200.50", "fromAccount": "checking account"}, [auth_context]
        )

        spy_banking.process_transfer.assert_awaited_once_with("checking", "savings", 1200.5)
        assert response.text == "Transfer complete! Moved $1,200.50 from checking to savings."
        assert response.output_contexts[0].lifespan_count == 5

    @pytest.mark.asyncio
    async def test_transfer_missing_details_keeps_contexts(self, spy_banking, auth_context, transfer_context):
        handler = FulfillmentHandler(spy_banking)
        contexts = [auth_context, transfer_context]

        response = await handler.handle_intent("transfer.funds", {"fromAccount": "savings"}, contexts)

        assert response.text == TRANSFER_MISSING_TEXT
        assert response.quick_replies == ["$50", "$100", "$500", "To Savings", "To Checking"]
        assert response.contexts_changed is False
        assert response.output_contexts == contexts
        spy_banking.process_transfer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transfer_same_account_rejected(self, spy_banking, auth_context, transfer_context):
        handler = FulfillmentHandler(spy_banking)

        response = await handler.handle_intent(
            "transfer.funds",
            {"amount": 20, "fromAccount": "savings", "toAccount": "my savings"},
            [auth_context, transfer_context],
        )

        assert response.text.startswith("You cannot transfer to the same account")
        assert {c.short_name: c.lifespan_count for c in response.output_contexts}["transfer-followup"] == 0
        spy_banking.process_transfer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transfer_domain_failure_relayed(self, handler, auth_context):
        response = await handler.handle_intent(
            "transfer.funds", {"amount": 20000, "fromAccount": "savings", "toAccount": "checking"}, [auth_context]
        )

        assert response.text == "Transfer failed: Amount must be between $1 and $10000"
        assert response.quick_replies == ["Check Balance", "Try Again"]

    @pytest.mark.asyncio
    async def test_transaction_history(self, handler, auth_context):
        response = await handler.handle_intent("transaction.history", {}, [auth_context])

        lines = response.text.split("\n")
        assert lines[0] == "Recent transactions:"
        assert lines[2] == "1. 2025-01-14 - Starbucks Coffee (-$5.75)"
        assert len(lines) == 7

    @pytest.mark.asyncio
    async def test_transaction_history_empty(self, spy_banking, auth_context):
        handler = FulfillmentHandler(spy_banking)
        response = await handler.handle_intent("transaction.history", {}, [auth_context])
        assert response.text == NO_TRANSACTIONS_TEXT

    @pytest.mark.asyncio
    async def test_request_agent(self, handler):
        response = await handler.handle_intent("request.agent", {}, [])

        assert response.payload_action == "TRANSFER_AGENT"
        messages = response.to_webhook_response()["fulfillmentMessages"]
        assert messages[-1] == {
            "platform": "PLATFORM_UNSPECIFIED",
            "payload": {"action": "TRANSFER_AGENT", "message": "Connecting..."},
        }

    @pytest.mark.asyncio
    async def test_default_fallback_clears(self, handler, transfer_context):
        response = await handler.handle_intent("Default Fallback Intent", {}, [transfer_context])

        assert response.text == FALLBACK_TEXT
        assert response.output_contexts[0].lifespan_count == 0

    @pytest.mark.asyncio
    async def test_unknown_intent_leaves_contexts(self, handler, transfer_context):
        response = await handler.handle_intent("faq.hours", {}, [transfer_context])

        assert response.text == HELP_TEXT
        assert response.contexts_changed is False
        assert "outputContexts" not in response.to_webhook_response()

    @pytest.mark.asyncio
    async def test_exception_becomes_apology(self, spy_banking, auth_context, transfer_context):
        spy_banking.get_accounts.side_effect = RuntimeError("db down")
        handler = FulfillmentHandler(spy_banking)

        response = await handler.handle_intent("check.balance", {}, [auth_context, transfer_context])

        assert response.text == ERROR_TEXT
        assert [c.lifespan_count for c in response.output_contexts] == [5, 0]


class TestWebhookWire:
    def test_parse_webhook_request(self):
        body = {
            "queryResult": {
                "intent": {"displayName": "transfer.funds"},
                "parameters": {"amount": 50},
                "outputContexts": [{"name": "s/contexts/authenticated", "lifespanCount": 4, "parameters": {"authenticated": True}}],
            }
        }
        intent, params, contexts = parse_webhook_request(body)
        assert intent == "transfer.funds"
        assert params == {"amount": 50}
        assert contexts[0].short_name == "authenticated"

    def test_parse_empty_body(self):
        assert parse_webhook_request({}) == ("", {}, [])

    def test_parse_wrongly_typed_fields(self):
        body = {
            "queryResult": {
                "intent": {"displayName": ["check.balance"]},
                "parameters": [1, 2],
                "outputContexts": [{"name": "s/contexts/a", "lifespanCount": "x"}, "junk", None],
            }
        }
        intent, params, contexts = parse_webhook_request(body)

        assert intent == ""
        assert params == {}
        assert [(c.short_name, c.lifespan_count) for c in contexts] == [("a", 0)]
        assert parse_webhook_request({"queryResult": "nope"}) == ("", {}, [])

    @pytest.mark.asyncio
    async def test_webhook_response_shape(self, handler, auth_context):
        response = await handler.handle_intent("check.balance", {}, [auth_context])
        wire = response.to_webhook_response()

        assert wire["fulfillmentText"] == response.text
        assert wire["fulfillmentMessages"][0] == {"text": {"text": [response.text]}}
        assert wire["fulfillmentMessages"][1] == {"quickReplies": {"quickReplies": STANDARD_QUICK_REPLIES}}
        assert wire["outputContexts"] == [
            {"name": auth_context.name, "lifespanCount": 5, "parameters": {"authenticated": True}}
        ]
