"""
concierge/config.py

Environment-driven settings for the SecureBank concierge service.

Values are read once from the process environment (a local .env file is
loaded first when present). Missing backend settings do not stop the
service from starting; the adapter that needs them raises
BackendConfigError when it is first called.
"""

import os
import logging
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv(), override=False)

logger = logging.getLogger("concierge.app")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid float for %s=%r; using default %s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid int for %s=%r; using default %s", name, raw, default)
        return default


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    # Dialogflow (dialogue engine)
    dialogflow_project_id: Optional[str] = None
    dialogflow_language_code: str = "en-US"

    # Lex V2 (intent service) and Kendra (knowledge search)
    aws_region: Optional[str] = None
    lex_bot_id: Optional[str] = None
    lex_bot_alias_id: Optional[str] = None
    lex_locale_id: str = "en_US"
    lex_fallback_intent: str = "FallbackIntent"
    kendra_index_id: Optional[str] = None

    # Routing policy
    intent_miss_threshold: float = 0.60
    search_confidence: float = 0.9
    backend_timeout_seconds: float = 10.0

    # Banking collaborator
    mock_api_token: str = "demo-token"
    banking_api_base_url: Optional[str] = None

    # Guards / sessions
    max_message_length: int = 1000
    chat_rate_limit_per_minute: int = 20
    login_rate_limit_per_minute: int = 5
    session_timeout_minutes: int = 30

    def missing_backend_settings(self) -> List[str]:
        """Names of backend variables that are not set."""
        missing = []
        if not self.dialogflow_project_id:
            missing.append("DIALOGFLOW_PROJECT_ID")
        if not self.aws_region:
            missing.append("AWS_REGION")
        if not self.lex_bot_id:
            missing.append("LEX_BOT_ID")
        if not self.lex_bot_alias_id:
            missing.append("LEX_BOT_ALIAS_ID")
        if not self.kendra_index_id:
            missing.append("KENDRA_INDEX_ID")
        return missing


def load_settings() -> Settings:
    """
    Build Settings from the current environment.
    """
    return Settings(
        dialogflow_project_id=_env_str("DIALOGFLOW_PROJECT_ID"),
        dialogflow_language_code=_env_str("DIALOGFLOW_LANGUAGE_CODE", "en-US"),
        aws_region=_env_str("AWS_REGION"),
        lex_bot_id=_env_str("LEX_BOT_ID"),
        lex_bot_alias_id=_env_str("LEX_BOT_ALIAS_ID"),
        lex_locale_id=_env_str("LEX_LOCALE_ID", "en_US"),
        lex_fallback_intent=_env_str("LEX_FALLBACK_INTENT", "FallbackIntent"),
        kendra_index_id=_env_str("KENDRA_INDEX_ID"),
        intent_miss_threshold=_env_float("INTENT_MISS_THRESHOLD", 0.60),
        search_confidence=_env_float("SEARCH_CONFIDENCE", 0.9),
        backend_timeout_seconds=_env_float("BACKEND_TIMEOUT_SECONDS", 10.0),
        mock_api_token=_env_str("MOCK_API_TOKEN", "demo-token"),
        banking_api_base_url=_env_str("BANKING_API_BASE_URL"),
        max_message_length=_env_int("MAX_MESSAGE_LENGTH", 1000),
        chat_rate_limit_per_minute=_env_int("CHAT_RATE_LIMIT_PER_MINUTE", 20),
        login_rate_limit_per_minute=_env_int("LOGIN_RATE_LIMIT_PER_MINUTE", 5),
        session_timeout_minutes=_env_int("SESSION_TIMEOUT_MINUTES", 30),
    )
