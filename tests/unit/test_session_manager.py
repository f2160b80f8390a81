"""
Unit tests for the in-memory session store.
"""

from datetime import datetime, timedelta

from concierge.context.session_manager import SessionManager


class TestSessionManager:
    def test_ensure_creates_anonymous_session(self):
        manager = SessionManager()
        session = manager.ensure_session("s-1")

        assert session["is_authenticated"] is False
        assert session["history"] == []
        assert manager.ensure_session("s-1") is session

    def test_login_and_logout(self):
        manager = SessionManager()
        manager.mark_authenticated("s-1", "demo@bank.com")
        assert manager.is_authenticated("s-1")
        assert manager.get_session("s-1")["username"] == "demo@bank.com"

        manager.clear_authentication("s-1")
        assert not manager.is_authenticated("s-1")

    def test_expired_session_dropped(self):
        manager = SessionManager(session_timeout_minutes=30)
        manager.mark_authenticated("s-1", "demo@bank.com")
        manager.sessions["s-1"]["last_activity"] = datetime.now() - timedelta(minutes=31)

        assert manager.get_session("s-1") is None
        assert not manager.is_authenticated("s-1")

    def test_history(self):
        manager = SessionManager()
        manager.add_history_message("s-1", "user", "hi")
        manager.add_history_message("s-1", "assistant", "hello")

        history = manager.get_session("s-1")["history"]
        assert [(m["role"], m["text"]) for m in history] == [("user", "hi"), ("assistant", "hello")]

    def test_new_session_sweeps_expired(self):
        manager = SessionManager(session_timeout_minutes=30)
        for i in range(3):
            manager.ensure_session(f"old-{i}")
            manager.sessions[f"old-{i}"]["last_activity"] = datetime.now() - timedelta(minutes=45)
        manager.ensure_session("live")

        manager.ensure_session("new")

        assert set(manager.sessions) == {"live", "new"}
        assert manager.purge_expired() == 0
