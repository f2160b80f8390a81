"""
Mock banking domain: accounts, transactions and transfer rules.
"""

from .models import Account, Transaction, TransferData, TransferResult  # noqa: F401
from .service import BankingService  # noqa: F401
