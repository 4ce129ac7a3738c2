"""
Session guard for protected client commands.

Sessions are stored locally under ``grammarhub_session`` and verified against
the server's active session token at most once every two minutes, which is
how a login on a second device signs the first one out.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from grammarhub.client.storage import (
    DASHBOARD_CACHE_KEY,
    PROGRESS_KEY,
    SESSION_KEY,
    STUDENT_ID_KEY,
    SYNC_QUEUE_KEY,
    SessionStorage,
)

logger = logging.getLogger(__name__)

SESSION_MAX_AGE_MS = 24 * 60 * 60 * 1000
CHECK_INTERVAL_MS = 2 * 60 * 1000
REQUIRED_FIELDS = ("studentId", "activeSessionToken", "loginAt")


class LoginRequired(Exception):
    """The caller must log in again; ``reason`` says why (``None`` for a plain logout)."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(reason or "login required")


class SessionGuard:
    def __init__(
        self,
        local_storage: SessionStorage,
        session_storage: SessionStorage,
        api,
        progress,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.local = local_storage
        self.session_storage = session_storage
        self.api = api
        self.progress = progress
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def get_session(self) -> Optional[Dict[str, Any]]:
        session = self.local.get_json(SESSION_KEY)
        if not isinstance(session, dict):
            return None
        if not all(session.get(name) for name in REQUIRED_FIELDS):
            return None
        return session

    def create_session(self, student_id: str, student_name: str, email: str, session_token: str) -> Dict[str, Any]:
        login_at = self._now_ms()
        session = {
            "studentId": student_id,
            "studentName": student_name,
            "email": email,
            "activeSessionToken": session_token,
            "loginAt": login_at,
            "expiresAt": login_at + SESSION_MAX_AGE_MS,
            "lastChecked": login_at,
        }
        if not self.local.set_json(SESSION_KEY, session):
            logger.warning("Failed to save session")
        self.local.set_item(STUDENT_ID_KEY, student_id)
        self.progress.update_meta(studentId=student_id, studentName=student_name)
        return session

    def is_authenticated(self) -> bool:
        session = self.get_session()
        return session is not None and self._now_ms() <= session.get("expiresAt", 0)

    def check_auth(self) -> Dict[str, Any]:
        """Return the active session or raise :class:`LoginRequired`."""
        session = self.get_session()
        if session is None:
            raise LoginRequired()
        now = self._now_ms()
        if now > session.get("expiresAt", 0):
            self.logout(reason="session_expired")

        last_checked = session.get("lastChecked") or 0
        if not last_checked or now - last_checked > CHECK_INTERVAL_MS:
            result = self.api.check_session(session["studentId"], session["activeSessionToken"])
            if not result.get("success"):
                logger.warning("Session revoked by server", extra={"reason": result.get("reason")})
                self._clear_local_session()
                raise LoginRequired("session_revoked")
            if result.get("offline"):
                session["_verified"] = False
            else:
                session["lastChecked"] = now
                session["_verified"] = True
                self.local.set_json(SESSION_KEY, session)
        return session

    def logout(self, reason: Optional[str] = None) -> None:
        """Sign out everywhere this client knows about, then raise :class:`LoginRequired`."""
        session = self.get_session()
        if session is not None:
            self.api.logout_session(session["studentId"], session["activeSessionToken"])
        self.progress.clear_all_session_data()
        self._clear_local_session()
        raise LoginRequired(reason)

    def _clear_local_session(self) -> None:
        for key in (SESSION_KEY, PROGRESS_KEY, STUDENT_ID_KEY, SYNC_QUEUE_KEY):
            self.local.remove_item(key)
        self.session_storage.remove_item(DASHBOARD_CACHE_KEY)
