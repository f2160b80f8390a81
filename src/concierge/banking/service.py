"""
Banking Service Business Logic
In-process mock bank used by the fulfillment webhook and the banking routes.
"""

import logging
import time
from typing import List, Optional, Sequence

from .mock_data import MOCK_ACCOUNTS, MOCK_TRANSACTIONS, TRANSFER_MAX_AMOUNT, TRANSFER_MIN_AMOUNT
from .models import Account, Transaction, TransferData, TransferResult

logger = logging.getLogger("concierge.banking")


class BankingService:
    """
    Read-only mock bank.

    Transfers are validated and priced against the current balances but
    balances are never mutated.
    """

    def __init__(
        self,
        accounts: Sequence[Account] = MOCK_ACCOUNTS,
        transactions: Sequence[Transaction] = MOCK_TRANSACTIONS,
        min_amount: float = TRANSFER_MIN_AMOUNT,
        max_amount: float = TRANSFER_MAX_AMOUNT,
    ):
        self.accounts = tuple(accounts)
        self.transactions = tuple(transactions)
        self.min_amount = min_amount
        self.max_amount = max_amount

    async def get_accounts(self) -> List[Account]:
        return list(self.accounts)

    async def get_account_by_type(self, account_type: str) -> Optional[Account]:
        return next((a for a in self.accounts if a.type == account_type), None)

    async def get_transactions(self, account_id: Optional[str] = None, limit: int = 5) -> List[Transaction]:
        txns = [t for t in self.transactions if account_id is None or t.account_id == account_id]
        return txns[: max(limit, 0)]

    async def process_transfer(self, from_type: str, to_type: str, amount: float) -> TransferResult:
        """
        Validate and price a transfer between the caller's own accounts.

        Domain failures come back as TransferResult(success=False, error=...)
        rather than exceptions.
        """
        from_account = await self.get_account_by_type(from_type)
        to_account = await self.get_account_by_type(to_type)

        if not from_account or not to_account:
            logger.warning("Transfer rejected: invalid account type from=%s to=%s", from_type, to_type)
            return TransferResult(success=False, error="Invalid account type")

        if amount < self.min_amount or amount > self.max_amount:
            logger.warning("Transfer rejected: amount out of range amount=%s", amount)
            return TransferResult(
                success=False,
                error=f"Amount must be between ${self.min_amount:g} and ${self.max_amount:g}",
            )

        if from_account.balance < amount:
            logger.warning(
                "Transfer rejected: insufficient funds from=%s balance=%s amount=%s",
                from_type,
                from_account.balance,
                amount,
            )
            return TransferResult(success=False, error="Insufficient funds")

        data = TransferData(
            from_account=from_account.type,
            to_account=to_account.type,
            amount=amount,
            new_from_balance=round(from_account.balance - amount, 2),
            new_to_balance=round(to_account.balance + amount, 2),
            transaction_id=f"txn-{int(time.time() * 1000)}",
        )
        logger.info("Transfer priced from=%s to=%s amount=%s id=%s", from_type, to_type, amount, data.transaction_id)
        return TransferResult(success=True, data=data)
