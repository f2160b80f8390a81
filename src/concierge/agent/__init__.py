"""
Routing and webhook fulfillment
"""

from .fulfillment import FulfillmentHandler, FulfillmentResponse  # noqa: F401
from .orchestrator import ConversationOrchestrator  # noqa: F401
