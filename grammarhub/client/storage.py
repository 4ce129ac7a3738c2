"""
Browser-style key/value storage for the client.

``LocalStorage`` persists string values to a JSON file; ``SessionStorage``
lives only for the current process. Both swallow and log write failures so
a full disk never interrupts a practice session.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PROGRESS_KEY = "grammarhub_progress_v2"
STUDENT_ID_KEY = "grammarhub_student_id"
SYNC_QUEUE_KEY = "grammarhub_sync_queue"
SESSION_KEY = "grammarhub_session"
DASHBOARD_CACHE_KEY = "grammarhub_dashboard_cache"


class SessionStorage:
    """In-memory string store scoped to one process run."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}
        self._lock = threading.RLock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> bool:
        with self._lock:
            self._items[key] = str(value)
            return self._persist()

    def remove_item(self, key: str) -> None:
        with self._lock:
            if self._items.pop(key, None) is not None:
                self._persist()

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._persist()

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unparseable value for %s", key)
            return default

    def set_json(self, key: str, value: Any) -> bool:
        return self.set_item(key, json.dumps(value))

    def _persist(self) -> bool:
        return True


class LocalStorage(SessionStorage):
    """String store persisted as a JSON object on disk."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._items = self._load()

    def _load(self) -> Dict[str, str]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Local storage at %s is unreadable (%s); starting empty", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _persist(self) -> bool:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(self._items), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.warning("Local storage save failed: %s", exc, extra={"path": str(self.path)})
            return False
        return True
