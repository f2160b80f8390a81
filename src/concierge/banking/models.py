"""
Schemas for the mock banking domain
"""

from typing import Literal, Optional

from pydantic import BaseModel

AccountType = Literal["checking", "savings"]


class Account(BaseModel):
    id: str
    type: AccountType
    balance: float
    account_number: str


class Transaction(BaseModel):
    id: str
    date: str
    description: str
    amount: float
    type: Literal["debit", "credit"]
    category: str
    account_id: str


class TransferData(BaseModel):
    from_account: str
    to_account: str
    amount: float
    new_from_balance: float
    new_to_balance: float
    transaction_id: str


class TransferResult(BaseModel):
    success: bool
    data: Optional[TransferData] = None
    error: Optional[str] = None
