"""
Mock Bank Client
HTTP implementation of the banking collaborator, for deployments where the
fulfillment webhook runs apart from the banking API.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from concierge.banking.models import Account, Transaction, TransferResult

logger = logging.getLogger("concierge.clients.mock_bank")


class MockBankClient:
    """
    Talks to the /api/banking routes with the shared bearer token.

    Exposes the same coroutines as BankingService so the fulfillment
    handler can use either.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}"}

    async def close(self) -> None:
        await self.client.aclose()

    async def get_accounts(self) -> List[Account]:
        url = f"{self.base_url}/api/banking/accounts"
        response = await self.client.get(url, headers=self._headers)
        logger.info("Mock-bank GET %s -> %s", url, response.status_code)
        response.raise_for_status()
        data = response.json().get("data") or {}
        return [Account(**a) for a in data.get("accounts") or []]

    async def get_transactions(self, account_id: Optional[str] = None, limit: int = 5) -> List[Transaction]:
        url = f"{self.base_url}/api/banking/transactions"
        params: Dict[str, Any] = {"limit": limit}
        if account_id:
            params["account_id"] = account_id
        response = await self.client.get(url, headers=self._headers, params=params)
        logger.info("Mock-bank GET %s -> %s", url, response.status_code)
        response.raise_for_status()
        data = response.json().get("data") or {}
        return [Transaction(**t) for t in data.get("transactions") or []]

    async def process_transfer(self, from_type: str, to_type: str, amount: float) -> TransferResult:
        """
        POST a transfer. A 400 is a domain rejection and comes back as a
        failed TransferResult; any other error status raises.
        """
        url = f"{self.base_url}/api/banking/transfer"
        payload = {"fromAccount": from_type, "toAccount": to_type, "amount": amount}
        response = await self.client.post(url, json=payload, headers=self._headers)
        logger.info("Mock-bank POST %s -> %s", url, response.status_code)

        if response.status_code == 400:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text
            return TransferResult(success=False, error=detail or "Transfer failed")

        response.raise_for_status()
        body = response.json()
        return TransferResult(success=bool(body.get("success")), data=body.get("data"), error=body.get("error"))
