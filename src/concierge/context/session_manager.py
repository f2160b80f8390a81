"""
Session Management
Keeps per-session chat state and the authenticated flag.

The orchestrator never sees a session; the HTTP layer reads
``is_authenticated`` from here and passes the boolean along.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional


class SessionManager:
    """
    In-memory sessions with idle expiry.

    Every read refreshes ``last_activity``; a session idle for longer than
    the timeout is dropped on its next read and recreated empty.
    """

    def __init__(self, session_timeout_minutes: int = 30, storage: Optional[Dict[str, Any]] = None):
        self.sessions: Dict[str, Any] = storage if storage is not None else {}
        self.session_timeout = timedelta(minutes=session_timeout_minutes)

    def _init_session(self, session_id: str) -> Dict[str, Any]:
        now = datetime.now()
        session: Dict[str, Any] = {
            "session_id": session_id,
            "username": None,
            "is_authenticated": False,
            "created_at": now,
            "last_activity": now,
            # role/text/timestamp entries
            "history": [],
        }
        self.save_session(session_id, session)
        return session

    def purge_expired(self) -> int:
        """
        Drop every session idle for longer than the timeout. Returns how
        many were removed.
        """
        now = datetime.now()
        expired = [
            sid
            for sid, session in self.sessions.items()
            if now - session.get("last_activity", now) > self.session_timeout
        ]
        for sid in expired:
            del self.sessions[sid]
        return len(expired)

    def ensure_session(self, session_id: str) -> Dict[str, Any]:
        """
        Return the session for ``session_id``, creating it if missing or expired.

        Creating a session also sweeps out other expired sessions.
        """
        session = self.get_session(session_id)
        if session is None:
            self.purge_expired()
            session = self._init_session(session_id)
        return session

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Get session data, or None if not found/expired.
        """
        session = self.sessions.get(session_id)
        if session:
            now = datetime.now()
            if now - session.get("last_activity", now) > self.session_timeout:
                del self.sessions[session_id]
                return None
            session["last_activity"] = now
            self.save_session(session_id, session)
        return session

    def is_authenticated(self, session_id: str) -> bool:
        session = self.get_session(session_id)
        return bool(session and session.get("is_authenticated"))

    def mark_authenticated(self, session_id: str, username: str) -> Dict[str, Any]:
        session = self.ensure_session(session_id)
        session["is_authenticated"] = True
        session["username"] = username
        self.save_session(session_id, session)
        return session

    def clear_authentication(self, session_id: str) -> None:
        session = self.get_session(session_id)
        if session:
            session["is_authenticated"] = False
            session["username"] = None
            self.save_session(session_id, session)

    def add_history_message(self, session_id: str, role: str, text: str) -> None:
        session = self.ensure_session(session_id)
        history = session.setdefault("history", [])
        history.append(
            {
                "role": role,
                "text": text,
                "timestamp": datetime.now().isoformat(),
            }
        )
        self.save_session(session_id, session)

    def save_session(self, session_id: str, session: Dict[str, Any]) -> None:
        self.sessions[session_id] = session
