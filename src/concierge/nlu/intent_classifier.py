"""
Intent Classification Module
Buckets free text into a routing category with a cheap lexical rule
"""

from typing import Dict, Optional, Tuple

from concierge.schemas.results import Category


BANKING_KEYWORDS: Tuple[str, ...] = (
    "balance",
    "transfer",
    "transaction",
    "account",
    "deposit",
    "withdraw",
    "statement",
    "checking",
    "savings",
    "send money",
    "move money",
    "my money",
    "payment history",
)

SUPPORT_KEYWORDS: Tuple[str, ...] = (
    "help",
    "hours",
    "open",
    "fee",
    "location",
    "branch",
    "atm",
    "routing",
    "contact",
    "support",
    "card",
    "password",
    "agent",
    "human",
    "lost",
    "stolen",
    "fraud",
)


class IntentClassifier:
    """
    Classifies user messages into BANKING, SUPPORT or GENERAL.

    Keyword sets are checked in insertion order and the first match wins;
    a message that matches nothing is GENERAL.
    """

    def __init__(self, keyword_sets: Optional[Dict[Category, Tuple[str, ...]]] = None):
        self.keyword_sets = keyword_sets or {
            Category.BANKING: BANKING_KEYWORDS,
            Category.SUPPORT: SUPPORT_KEYWORDS,
        }

    def classify(self, text: Optional[str]) -> Category:
        text_lower = (text or "").lower()
        for category, keywords in self.keyword_sets.items():
            if any(keyword in text_lower for keyword in keywords):
                return category
        return Category.GENERAL


_default_classifier = IntentClassifier()


def classify(text: Optional[str]) -> Category:
    return _default_classifier.classify(text)
