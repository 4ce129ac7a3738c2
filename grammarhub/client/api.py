"""
Backend connector for the practice client.

Works in two modes: with ``GRAMMARHUB_BACKEND_URL`` set it talks to the
GrammarHub service over HTTP; without it every call degrades to a
local-storage-only answer. Failed result uploads go to an offline queue that
is retried a bounded number of times.
"""
from __future__ import annotations

import logging
import random
import string
import threading
from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from grammarhub.client.config import ClientConfig
from grammarhub.client.storage import PROGRESS_KEY, STUDENT_ID_KEY, SYNC_QUEUE_KEY, SessionStorage
from grammarhub.utils.rounding import percentage

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10
MAX_RETRIES = 3
NO_BACKEND = "no_backend_configured"
_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_student_id(now: Optional[datetime] = None) -> str:
    """Local identity for students who never logged in: ``STU_YYYYMMDD_xxxxx``."""
    stamp = (now or datetime.now()).strftime("%Y%m%d")
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(5))
    return f"STU_{stamp}_{suffix}"


def _now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ApiClient:
    def __init__(
        self,
        config: ClientConfig,
        local_storage: SessionStorage,
        session: Any = None,
        on_result_synced: Optional[Callable[[], None]] = None,
    ) -> None:
        self.config = config
        self.storage = local_storage
        self.http = session or requests.Session()
        self.on_result_synced = on_result_synced
        self._inflight: Dict[str, Future] = {}
        self._inflight_lock = threading.Lock()

    @property
    def backend_url(self) -> Optional[str]:
        return self.config.backend_url

    # ── identity ────────────────────────────────────────────────
    def get_student_id(self) -> str:
        student_id = self.storage.get_item(STUDENT_ID_KEY)
        if not student_id:
            student_id = generate_student_id()
            self.storage.set_item(STUDENT_ID_KEY, student_id)
        return student_id

    def get_student_name(self) -> Optional[str]:
        data = self.storage.get_json(PROGRESS_KEY) or {}
        meta = data.get("_meta") if isinstance(data, dict) else None
        return (meta or {}).get("studentName") or None

    def set_student_name(self, name: str) -> None:
        data = self.storage.get_json(PROGRESS_KEY) or {}
        if not isinstance(data, dict):
            data = {}
        data["_meta"] = {**(data.get("_meta") or {}), "studentName": name, "studentId": self.get_student_id()}
        self.storage.set_json(PROGRESS_KEY, data)

    # ── transport ───────────────────────────────────────────────
    def _url(self, path: str) -> str:
        return f"{self.backend_url}{path}"

    @staticmethod
    def _body(response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {}
        if isinstance(payload, dict):
            # HTTPException wraps service failures in ``detail``.
            detail = payload.get("detail")
            if isinstance(detail, dict):
                return detail
            if isinstance(detail, str):
                return {"error": detail}
            return payload
        return {}

    def _post(self, path: str, body: Dict[str, Any]):
        return self.http.post(self._url(path), json=body, timeout=_DEFAULT_TIMEOUT)

    def _get(self, path: str):
        return self.http.get(self._url(path), timeout=_DEFAULT_TIMEOUT)

    @staticmethod
    def _ok(response) -> bool:
        return 200 <= response.status_code < 300

    def _failure(self, response) -> Dict[str, Any]:
        return {**self._body(response), "success": False, "reason": f"http_{response.status_code}"}

    # ── auth ────────────────────────────────────────────────────
    def login(self, email: str, password: str) -> Dict[str, Any]:
        if not self.backend_url:
            return {"success": False, "reason": NO_BACKEND}
        try:
            response = self._post("/auth/login", {"email": email, "password": password})
        except requests.RequestException as exc:
            logger.warning("Login failed: %s", exc)
            return {"success": False, "reason": str(exc)}
        if not self._ok(response):
            return self._failure(response)
        return response.json()

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        if not self.backend_url:
            return {"success": False, "error": "Backend not configured.", "reason": NO_BACKEND}
        try:
            response = self._post("/auth/register", {"name": name, "email": email, "password": password})
        except requests.RequestException as exc:
            return {"success": False, "error": str(exc)}
        if not self._ok(response):
            failure = self._failure(response)
            failure.setdefault("error", f"Server error (HTTP {response.status_code})")
            return failure
        return response.json()

    def validate_session(self, student_id: str, token: str, login_at: Any) -> Dict[str, Any]:
        if not self.backend_url:
            return {"success": True, "verified": True}
        try:
            response = self._post(
                "/auth/validate-session",
                {"studentId": student_id, "token": token, "loginAt": str(login_at)},
            )
        except requests.RequestException:
            # Offline use is allowed.
            return {"success": True, "verified": True, "offline": True}
        if not self._ok(response):
            return {"success": False}
        return response.json()

    def check_session(self, student_id: str, session_token: str) -> Dict[str, Any]:
        """Ask the server whether ``session_token`` is still the active session."""
        if not self.backend_url:
            return {"success": True}
        try:
            response = self._post("/auth/check-session", {"studentId": student_id, "sessionToken": session_token})
        except requests.RequestException as exc:
            logger.warning("Session check failed (network error); allowing offline: %s", exc)
            return {"success": True, "offline": True}
        if not self._ok(response):
            body = self._body(response)
            return {"success": False, "reason": body.get("reason") or f"http_{response.status_code}"}
        return response.json()

    def logout_session(self, student_id: str, session_token: str) -> Dict[str, Any]:
        if not self.backend_url:
            return {"success": True}
        try:
            response = self._post("/auth/logout", {"studentId": student_id, "sessionToken": session_token})
        except requests.RequestException:
            # Local session is cleared regardless.
            return {"success": True, "offline": True}
        if not self._ok(response):
            return {"success": False}
        return response.json()

    # ── reads ───────────────────────────────────────────────────
    def _get_json_or_none(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            response = self._get(path)
        except requests.RequestException as exc:
            logger.warning("GET %s failed: %s", path, exc)
            return None
        if not self._ok(response):
            return None
        try:
            return response.json()
        except ValueError:
            return None

    def get_student_details(self, student_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        if not self.backend_url:
            return None
        sid = student_id or self.get_student_id()
        return self._get_json_or_none(f"/profile/{quote(sid, safe='')}")

    def fetch_progress(self, student_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Fetch the dashboard payload; concurrent calls for one student share a request."""
        if not self.backend_url:
            return None
        sid = student_id or self.get_student_id()
        key = f"fetchProgress_{sid}"
        with self._inflight_lock:
            pending = self._inflight.get(key)
            owner = pending is None
            if owner:
                pending = Future()
                self._inflight[key] = pending
        if not owner:
            return pending.result()

        result = None
        try:
            result = self._get_json_or_none(f"/progress/{quote(sid, safe='')}")
        finally:
            with self._inflight_lock:
                self._inflight.pop(key, None)
            pending.set_result(result)
        return result

    # ── results + offline queue ─────────────────────────────────
    def get_queue(self) -> List[Dict[str, Any]]:
        queue = self.storage.get_json(SYNC_QUEUE_KEY) or []
        return queue if isinstance(queue, list) else []

    def _save_queue(self, queue: List[Dict[str, Any]]) -> None:
        self.storage.set_json(SYNC_QUEUE_KEY, queue)

    def _send_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {k: v for k, v in payload.items() if k != "retries"}
        try:
            response = self._post("/results", body)
        except requests.RequestException as exc:
            logger.warning("Backend sync failed: %s", exc)
            return {"success": False, "reason": str(exc), "retryable": True}
        if not self._ok(response):
            # 4xx is a rejection of this payload; resending cannot change it.
            retryable = response.status_code >= 500
            logger.warning("Backend returned HTTP %s", response.status_code, extra={"retryable": retryable})
            return {**self._failure(response), "retryable": retryable}
        try:
            data = response.json()
        except ValueError:
            data = None
        return {"success": True, "data": data}

    def sync_result(self, subject: str, level: str, set_number, score, total, time_taken: int = 0) -> Dict[str, Any]:
        """Upload one result; network and 5xx failures are queued for :meth:`retry_queue`."""
        if not self.backend_url:
            return {"success": False, "reason": NO_BACKEND}

        payload = {
            "studentId": self.get_student_id(),
            "studentName": self.get_student_name() or "Anonymous",
            "subject": subject,
            "level": level,
            "set": set_number,
            "score": score,
            "total": total,
            "timeTaken": time_taken,
            "percentage": percentage(score, total),
            "timestamp": _now_ms(),
            "date": _now_iso(),
        }
        result = self._send_payload(payload)
        retryable = result.pop("retryable", False)
        if result["success"]:
            if self.on_result_synced:
                self.on_result_synced()
        elif retryable:
            queue = self.get_queue()
            queue.append({**payload, "retries": 0})
            self._save_queue(queue)
            result["queued"] = True
            logger.info("result_queued", extra={"queue_length": len(queue), "reason": result.get("reason")})
        else:
            logger.warning("Result rejected by backend", extra={"reason": result.get("reason"), "code": result.get("code")})
        return result

    def retry_queue(self) -> Dict[str, int]:
        """Resend queued results; rejected items and items failing ``MAX_RETRIES`` times are dropped."""
        summary = {"sent": 0, "kept": 0, "dropped": 0}
        if not self.backend_url:
            return summary
        queue = self.get_queue()
        if not queue:
            return summary

        remaining = []
        for item in queue:
            result = self._send_payload(item)
            if result["success"]:
                summary["sent"] += 1
                continue
            if not result["retryable"]:
                summary["dropped"] += 1
                logger.warning(
                    "Dropping queued result rejected by backend",
                    extra={"reason": result.get("reason"), "subject": item.get("subject"), "set": item.get("set")},
                )
                continue
            item["retries"] = int(item.get("retries") or 0) + 1
            if item["retries"] < MAX_RETRIES:
                remaining.append(item)
                summary["kept"] += 1
            else:
                summary["dropped"] += 1
                logger.warning(
                    "Dropping queued result after %s attempts",
                    item["retries"],
                    extra={"subject": item.get("subject"), "level": item.get("level"), "set": item.get("set")},
                )
        self._save_queue(remaining)
        if summary["sent"] and self.on_result_synced:
            self.on_result_synced()
        return summary
