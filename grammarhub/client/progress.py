"""
Local progress store: the single source of truth for dashboards.

Layout of the ``grammarhub_progress_v2`` value::

    {
      "<subject>": {"<level>": {"<set>": {score, total, percentage, date, timestamp, timeTaken}}},
      "_meta": {"lastAttempted": {...}, "studentId": ..., "studentName": ..., ...}
    }

Backend data is merged in with a best-score rule so a result never regresses
whichever device recorded it.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from grammarhub.client.storage import (
    DASHBOARD_CACHE_KEY,
    PROGRESS_KEY,
    STUDENT_ID_KEY,
    SYNC_QUEUE_KEY,
    SessionStorage,
)
from grammarhub.utils.rounding import percentage, round_half_up

logger = logging.getLogger(__name__)

META_KEY = "_meta"
PREFETCH_TIMEOUT_SECONDS = 5.0


def display_date(moment: Optional[datetime] = None) -> str:
    """Short US date such as ``Oct 19, 2026``."""
    moment = moment or datetime.now()
    return f"{moment.strftime('%b')} {moment.day}, {moment.year}"


def _entries(mapping: Dict[str, Any]):
    return ((k, v) for k, v in mapping.items() if k != META_KEY and isinstance(v, dict))


class ProgressStore:
    def __init__(
        self,
        local_storage: SessionStorage,
        session_storage: SessionStorage,
        api=None,
        clock: Callable[[], float] = time.time,
        max_workers: int = 2,
        prefetch_timeout: float = PREFETCH_TIMEOUT_SECONDS,
    ) -> None:
        self.local = local_storage
        self.session = session_storage
        self.api = api
        self.clock = clock
        self.max_workers = max_workers
        self.prefetch_timeout = prefetch_timeout
        self._inflight_sync: Optional[Future] = None
        self._sync_lock = threading.Lock()

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    # ── storage ─────────────────────────────────────────────────
    def get_all(self) -> Dict[str, Any]:
        raw = self.local.get_json(PROGRESS_KEY)
        if not isinstance(raw, dict):
            return {}
        return {k: v for k, v in raw.items() if k == META_KEY or isinstance(v, dict)}

    def _save(self, data: Dict[str, Any]) -> None:
        if not self.local.set_json(PROGRESS_KEY, data):
            logger.warning("Progress save failed")

    def update_meta(self, **fields) -> None:
        data = self.get_all()
        data[META_KEY] = {**(data.get(META_KEY) or {}), **fields}
        self._save(data)

    def save_result(self, subject: str, level: str, set_number, score, total, time_taken: int = 0) -> int:
        """Record an attempt and return its percentage.

        ``lastAttempted`` always moves; the stored entry only changes when the
        attempt is at least as good as the current best.
        """
        set_key = str(set_number)
        data = self.get_all()
        pct = percentage(score, total)
        best = (data.get(subject, {}).get(level, {}).get(set_key) or {}).get("percentage") or 0
        date = display_date()
        ts = self._now_ms()

        data[META_KEY] = {
            **(data.get(META_KEY) or {}),
            "lastAttempted": {
                "subject": subject, "level": level, "set": set_key,
                "percentage": pct, "date": date, "timestamp": ts,
            },
        }
        if pct >= best:
            data.setdefault(subject, {}).setdefault(level, {})[set_key] = {
                "score": score,
                "total": total,
                "percentage": pct,
                "date": date,
                "timestamp": ts,
                "timeTaken": time_taken,
            }
        self._save(data)
        return pct

    # ── stats ───────────────────────────────────────────────────
    def get_set_result(self, subject: str, level: str, set_number) -> Optional[Dict[str, Any]]:
        return self.get_all().get(subject, {}).get(level, {}).get(str(set_number))

    def get_level_stats(self, subject: str, level: str) -> Dict[str, int]:
        sets = [entry for _, entry in _entries(self.get_all().get(subject, {}).get(level, {}))]
        if not sets:
            return {"completed": 0, "avgScore": 0}
        total = sum(entry.get("percentage") or 0 for entry in sets)
        return {"completed": len(sets), "avgScore": round_half_up(total / len(sets))}

    def get_subject_stats(self, subject: str) -> Dict[str, int]:
        completed = sum(len(list(_entries(levels))) for _, levels in _entries(self.get_all().get(subject, {})))
        return {"completed": completed}

    def get_global_stats(self) -> Dict[str, Any]:
        data = self.get_all()
        total_sets = 0
        total_score = 0
        active = set()
        best_subject = {"id": "None", "score": 0}

        for subject, levels in _entries(data):
            sub_sets = 0
            sub_score = 0
            for _, sets in _entries(levels):
                for _, entry in _entries(sets):
                    pct = entry.get("percentage") or 0
                    sub_sets += 1
                    sub_score += pct
                    total_score += pct
                    active.add(subject)
            total_sets += sub_sets
            if sub_sets and round_half_up(sub_score / sub_sets) > best_subject["score"]:
                best_subject = {"id": subject, "score": round_half_up(sub_score / sub_sets)}

        return {
            "totalSetsAttempted": total_sets,
            "overallPercentage": round_half_up(total_score / total_sets) if total_sets else 0,
            "subjectsActive": len(active),
            "bestSubject": best_subject,
            "lastAttempted": (data.get(META_KEY) or {}).get("lastAttempted"),
        }

    def get_time_totals(self) -> int:
        """Seconds spent across every stored best entry."""
        total = 0
        for _, levels in _entries(self.get_all()):
            for _, sets in _entries(levels):
                for _, entry in _entries(sets):
                    total += entry.get("timeTaken") or 0
        return total

    # ── session cache ───────────────────────────────────────────
    def has_valid_cache(self) -> bool:
        marker = self.session.get_json(DASHBOARD_CACHE_KEY)
        return isinstance(marker, dict) and bool(marker.get("valid"))

    def invalidate_cache(self) -> None:
        marker = self.session.get_json(DASHBOARD_CACHE_KEY)
        if isinstance(marker, dict):
            marker["valid"] = False
            self.session.set_json(DASHBOARD_CACHE_KEY, marker)
        logger.info("Dashboard cache invalidated")

    def clear_all_session_data(self) -> None:
        self.session.remove_item(DASHBOARD_CACHE_KEY)
        for key in (PROGRESS_KEY, STUDENT_ID_KEY, SYNC_QUEUE_KEY):
            self.local.remove_item(key)
        logger.info("All session data cleared")

    # ── backend sync ────────────────────────────────────────────
    def prefetch_dashboard_data(self, student_id: Optional[str] = None) -> bool:
        """Fetch progress and profile in parallel, merge them locally and mark the cache valid."""
        if self.api is None or not self.api.backend_url:
            return False
        sid = student_id or self.api.get_student_id()
        if not sid:
            return False

        logger.info("Prefetching dashboard data", extra={"student_id": sid})
        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            # One deadline covers both requests.
            deadline = time.monotonic() + self.prefetch_timeout
            progress_future = executor.submit(self.api.fetch_progress, sid)
            profile_future = executor.submit(self.api.get_student_details, sid)
            remote = self._result_or_none(progress_future, "progress", deadline)
            profile = self._result_or_none(profile_future, "profile", deadline)
        finally:
            executor.shutdown(wait=False)

        sets = ((remote or {}).get("data") or {}).get("sets") if isinstance(remote, dict) else None
        if isinstance(sets, dict) and sets:
            self.merge_backend_data(sets)

        if isinstance(profile, dict) and profile.get("success"):
            self.update_meta(
                studentId=profile.get("studentId"),
                studentName=profile.get("studentName"),
                schoolName=profile.get("schoolName") or "",
                className=profile.get("className") or "",
                profilePhoto=profile.get("profileImageURL") or "",
                guardianName=profile.get("guardianName") or "",
                contactNumber=profile.get("contactNumber") or "",
            )

        self.session.set_json(DASHBOARD_CACHE_KEY, {"cachedAt": self._now_ms(), "studentId": sid, "valid": True})
        logger.info("Dashboard data prefetch complete", extra={"student_id": sid})
        return True

    @staticmethod
    def _result_or_none(future: Future, label: str, deadline: float):
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FutureTimeout:
            logger.warning("Prefetch of %s timed out", label)
        except Exception as exc:
            logger.warning("Prefetch of %s failed: %s", label, exc)
        return None

    def sync_from_backend(self) -> bool:
        """Cache-first sync; concurrent callers share a single in-flight run."""
        with self._sync_lock:
            inflight = self._inflight_sync
            if inflight is None:
                if self.has_valid_cache():
                    logger.debug("Using cached dashboard data")
                    return True
                inflight = Future()
                self._inflight_sync = inflight
                owner = True
            else:
                owner = False
        if not owner:
            logger.debug("Sync already in flight; waiting on it")
            return inflight.result()

        ok = False
        try:
            if self.api is None or not self.api.backend_url:
                logger.info("No backend configured; skipping sync")
            else:
                ok = self.prefetch_dashboard_data(self.api.get_student_id())
        except Exception as exc:
            logger.warning("Backend sync failed: %s", exc)
        finally:
            with self._sync_lock:
                self._inflight_sync = None
            inflight.set_result(ok)
        return ok

    def merge_backend_data(self, remote: Dict[str, Any]) -> None:
        """Merge a subject -> level -> set map, keeping the best result per set.

        Higher percentage wins; equal percentages go to the newer timestamp.
        ``lastAttempted`` becomes the newest entry seen on either side.
        """
        local = self.get_all()
        latest = (local.get(META_KEY) or {}).get("lastAttempted")
        merged = 0

        for subject, levels in _entries(remote):
            if subject == "success":
                continue
            for level, sets in _entries(levels):
                for set_key, remote_entry in _entries(sets):
                    local_sets = local.setdefault(subject, {}).setdefault(level, {})
                    local_entry = local_sets.get(set_key)
                    remote_pct = remote_entry.get("percentage") or 0
                    remote_ts = remote_entry.get("timestamp") or 0
                    local_pct = (local_entry or {}).get("percentage") or 0
                    local_ts = (local_entry or {}).get("timestamp") or 0

                    if local_entry is None or remote_pct > local_pct or (remote_pct == local_pct and remote_ts > local_ts):
                        local_sets[set_key] = {
                            "score": remote_entry.get("score"),
                            "total": remote_entry.get("total"),
                            "percentage": remote_pct,
                            "date": remote_entry.get("date") or "",
                            "timestamp": remote_ts,
                            "timeTaken": remote_entry.get("timeTaken") or 0,
                        }
                        merged += 1

                    if not latest or remote_ts > (latest.get("timestamp") or 0):
                        latest = {
                            "subject": subject, "level": level, "set": set_key,
                            "percentage": remote_pct,
                            "date": remote_entry.get("date") or "",
                            "timestamp": remote_ts,
                        }

        local[META_KEY] = {**(local.get(META_KEY) or {}), "lastAttempted": latest}
        self._save(local)
        logger.info("merged_backend_progress", extra={"entries_replaced": merged})
