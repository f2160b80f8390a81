"""
Test configuration and fixtures.

Environment is pinned before any concierge module is imported so settings
and log files never depend on the developer's shell or .env file.
"""

import os
import tempfile

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="concierge-logs-"))
os.environ["MOCK_API_TOKEN"] = "test-token"
for _name in (
    "DIALOGFLOW_PROJECT_ID",
    "AWS_REGION",
    "LEX_BOT_ID",
    "LEX_BOT_ALIAS_ID",
    "KENDRA_INDEX_ID",
    "BANKING_API_BASE_URL",
):
    os.environ[_name] = ""

import pytest

from concierge.agent.contexts import DialogContext


SESSION = "projects/securebank/agent/sessions/abc-123"


@pytest.fixture
def auth_context():
    return DialogContext(
        name=f"{SESSION}/contexts/authenticated",
        lifespan_count=3,
        parameters={"authenticated": True},
    )


@pytest.fixture
def transfer_context():
    return DialogContext(
        name=f"{SESSION}/contexts/transfer-followup",
        lifespan_count=2,
        parameters={"amount": 50},
    )
