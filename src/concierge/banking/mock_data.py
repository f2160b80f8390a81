"""
Fixed demo data for the mock bank.
"""

from .models import Account, Transaction

MOCK_ACCOUNTS = (
    Account(id="acc-001", type="checking", balance=5432.10, account_number="****4521"),
    Account(id="acc-002", type="savings", balance=12543.00, account_number="****7892"),
)

MOCK_TRANSACTIONS = (
    Transaction(
        id="txn-001",
        date="2025-01-14",
        description="Starbucks Coffee",
        amount=-5.75,
        type="debit",
        category="Food & Dining",
        account_id="acc-001",
    ),
    Transaction(
        id="txn-002",
        date="2025-01-14",
        description="Target Store",
        amount=-87.32,
        type="debit",
        category="Shopping",
        account_id="acc-001",
    ),
    Transaction(
        id="txn-003",
        date="2025-01-13",
        description="Direct Deposit - Employer",
        amount=2847.50,
        type="credit",
        category="Income",
        account_id="acc-001",
    ),
    Transaction(
        id="txn-004",
        date="2025-01-12",
        description="Netflix Subscription",
        amount=-15.99,
        type="debit",
        category="Entertainment",
        account_id="acc-001",
    ),
    Transaction(
        id="txn-005",
        date="2025-01-11",
        description="Transfer from Savings",
        amount=500.00,
        type="credit",
        category="Transfer",
        account_id="acc-001",
    ),
)

TRANSFER_MIN_AMOUNT = 1
TRANSFER_MAX_AMOUNT = 10000

# Demo login for the mock authentication flow
MOCK_CREDENTIALS = {"username": "demo@bank.com", "password": "demo123"}
