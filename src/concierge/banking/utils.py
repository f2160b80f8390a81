"""
Common banking utilities
"""

from typing import Optional

ACCOUNT_TYPES = ("checking", "savings")


def format_currency(amount: float) -> str:
    """
    Format amount as a USD string, e.g. -5.75 -> "-$5.75"
    """
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def normalize_account(raw: object) -> Optional[str]:
    """
    Map free text such as "my checking account" or "Savings" onto an
    account type; anything unrecognized is None.

    Dialogflow entity objects ({"stringValue": "savings"}) are unwrapped.
    """
    if isinstance(raw, dict):
        raw = raw.get("stringValue")
    if not isinstance(raw, str):
        return None
    value = raw.strip().lower()
    if "check" in value:
        return "checking"
    if "sav" in value:
        return "savings"
    return None


def counterpart_account(account_type: str) -> str:
    # Only valid while the bank has exactly two account types.
    return "savings" if account_type == "checking" else "checking"
