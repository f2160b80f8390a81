from .session_manager import SessionManager  # noqa: F401
