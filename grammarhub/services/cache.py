"""In-process TTL cache for dashboard and profile reads."""
from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 90


def progress_key(student_id: str) -> str:
    return f"progress_{student_id}"


def profile_key(student_id: str) -> str:
    return f"profile_{student_id}"


class TTLCache:
    """Thread-safe key/value store where every entry carries its own expiry.

    Values are deep-copied on the way in and out so callers can never mutate a
    cached payload.
    """

    def __init__(self, default_ttl: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        seconds = self.default_ttl if ttl is None else ttl
        if seconds <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + seconds, copy.deepcopy(value))

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_script_cache: Optional[TTLCache] = None


def get_script_cache() -> TTLCache:
    global _script_cache
    if _script_cache is None:
        _script_cache = TTLCache()
    return _script_cache


def reset_script_cache_for_tests() -> None:  # pragma: no cover - used in tests
    global _script_cache
    _script_cache = None
