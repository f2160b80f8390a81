"""
Unit tests for the HTTP banking client, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from concierge.clients.mock_bank_client import MockBankClient


def _client(handler):
    transport = httpx.MockTransport(handler)
    return MockBankClient(
        "http://bank.test/",
        api_token="test-token",
        client=httpx.AsyncClient(transport=transport),
    )


class TestMockBankClient:
    @pytest.mark.asyncio
    async def test_get_accounts_sends_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            seen["path"] = request.url.path
            return httpx.Response(
                200,
                json={"success": True, "data": {"accounts": [
                    {"id": "acc-001", "type": "checking", "balance": 10.0, "account_number": "****0001"}
                ]}},
            )

        bank = _client(handler)
        accounts = await bank.get_accounts()
        await bank.close()

        assert seen == {"auth": "Bearer test-token", "path": "/api/banking/accounts"}
        assert accounts[0].account_number == "****0001"

    @pytest.mark.asyncio
    async def test_get_transactions_params(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["limit"] == "2"
            return httpx.Response(200, json={"success": True, "data": {"transactions": []}})

        bank = _client(handler)
        assert await bank.get_transactions(limit=2) == []

    @pytest.mark.asyncio
    async def test_transfer_success(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {"fromAccount": "checking", "toAccount": "savings", "amount": 25.0}
            return httpx.Response(200, json={"success": True, "data": {
                "from_account": "checking",
                "to_account": "savings",
                "amount": 25.0,
                "new_from_balance": 75.0,
                "new_to_balance": 125.0,
                "transaction_id": "txn-9",
            }})

        result = await _client(handler).process_transfer("checking", "savings", 25.0)

        assert result.success
        assert result.data.transaction_id == "txn-9"

    @pytest.mark.asyncio
    async def test_transfer_rejection_is_a_result(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"detail": "Insufficient funds"})

        result = await _client(handler).process_transfer("checking", "savings", 99999.0)

        assert not result.success
        assert result.error == "Insufficient funds"

    @pytest.mark.asyncio
    async def test_unauthorized_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"detail": "Unauthorized"})

        with pytest.raises(httpx.HTTPStatusError):
            await _client(handler).get_accounts()
