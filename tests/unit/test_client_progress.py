import threading
import time
from datetime import datetime
from unittest.mock import Mock

import pytest

from grammarhub.client.progress import ProgressStore, display_date
from grammarhub.client.storage import (
    DASHBOARD_CACHE_KEY,
    PROGRESS_KEY,
    STUDENT_ID_KEY,
    SYNC_QUEUE_KEY,
    SessionStorage,
)


class FakeClock:
    def __init__(self, now=1_790_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def local():
    return SessionStorage()


@pytest.fixture
def session():
    return SessionStorage()


@pytest.fixture
def api():
    fake = Mock()
    fake.backend_url = "https://api.example.com"
    fake.get_student_id.return_value = "STU001"
    fake.fetch_progress.return_value = None
    fake.get_student_details.return_value = None
    return fake


@pytest.fixture
def store(local, session, api, clock):
    return ProgressStore(local, session, api=api, clock=clock, max_workers=1)


def test_display_date():
    assert display_date(datetime(2026, 10, 9)) == "Oct 9, 2026"


def test_save_result_keeps_best_but_moves_last_attempted(store, clock):
    assert store.save_result("tenses", "primary", 1, 4, 5, time_taken=20) == 80
    clock.now += 60
    assert store.save_result("tenses", "primary", 1, 3, 5, time_taken=40) == 60

    best = store.get_set_result("tenses", "primary", 1)
    assert best["percentage"] == 80
    assert best["timeTaken"] == 20
    last = store.get_all()["_meta"]["lastAttempted"]
    assert last["percentage"] == 60
    assert last["set"] == "1"
    assert last["timestamp"] == int(clock.now * 1000)


def test_equal_score_replaces_entry(store, clock):
    store.save_result("tenses", "primary", "2", 4, 5, time_taken=20)
    clock.now += 1
    store.save_result("tenses", "primary", "2", 4, 5, time_taken=10)
    assert store.get_set_result("tenses", "primary", 2)["timeTaken"] == 10


def test_stats(store):
    store.save_result("tenses", "primary", 1, 5, 5, time_taken=30)
    store.save_result("tenses", "primary", 2, 3, 4, time_taken=20)
    store.save_result("tenses", "high", 1, 1, 2, time_taken=10)
    store.save_result("sva", "high", 1, 9, 10, time_taken=5)

    assert store.get_level_stats("tenses", "primary") == {"completed": 2, "avgScore": 88}
    assert store.get_level_stats("tenses", "middle") == {"completed": 0, "avgScore": 0}
    assert store.get_subject_stats("tenses") == {"completed": 3}
    assert store.get_time_totals() == 65

    stats = store.get_global_stats()
    assert stats["totalSetsAttempted"] == 4
    # (100 + 75 + 50 + 90) / 4 = 78.75
    assert stats["overallPercentage"] == 79
    assert stats["subjectsActive"] == 2
    assert stats["bestSubject"] == {"id": "sva", "score": 90}
    assert stats["lastAttempted"]["subject"] == "sva"


def test_global_stats_when_empty(store):
    stats = store.get_global_stats()
    assert stats["totalSetsAttempted"] == 0
    assert stats["overallPercentage"] == 0
    assert stats["bestSubject"] == {"id": "None", "score": 0}
    assert stats["lastAttempted"] is None


def test_corrupt_progress_reads_as_empty(store, local):
    local.set_item(PROGRESS_KEY, "[1, 2")
    assert store.get_all() == {}
    local.set_json(PROGRESS_KEY, ["not", "a", "map"])
    assert store.get_all() == {}


def test_merge_prefers_higher_then_newer(store, local):
    local.set_json(PROGRESS_KEY, {
        "tenses": {"primary": {
            "1": {"score": 4, "total": 5, "percentage": 80, "timestamp": 100, "date": "a", "timeTaken": 1},
            "2": {"score": 2, "total": 5, "percentage": 40, "timestamp": 100, "date": "a", "timeTaken": 1},
            "3": {"score": 3, "total": 5, "percentage": 60, "timestamp": 100, "date": "a", "timeTaken": 1},
        }},
        "_meta": {"studentName": "Asha"},
    })

    store.merge_backend_data({
        "tenses": {"primary": {
            "1": {"score": 3, "total": 5, "percentage": 60, "timestamp": 500, "date": "b"},
            "2": {"score": 5, "total": 5, "percentage": 100, "timestamp": 50, "date": "b", "timeTaken": 9},
            "3": {"score": 3, "total": 5, "percentage": 60, "timestamp": 200, "date": "b", "timeTaken": 7},
        }},
        "sva": {"high": {"1": {"score": 1, "total": 4, "percentage": 25, "timestamp": 300}}},
    })

    data = store.get_all()
    assert data["tenses"]["primary"]["1"]["percentage"] == 80
    assert data["tenses"]["primary"]["2"]["percentage"] == 100
    assert data["tenses"]["primary"]["3"]["timeTaken"] == 7
    assert data["sva"]["high"]["1"]["timeTaken"] == 0
    assert data["_meta"]["studentName"] == "Asha"
    assert data["_meta"]["lastAttempted"]["timestamp"] == 500
    assert data["_meta"]["lastAttempted"]["set"] == "1"


def test_merge_never_lowers_best_score(store):
    store.save_result("tenses", "primary", 1, 5, 5)
    store.merge_backend_data({"tenses": {"primary": {"1": {"percentage": 20, "timestamp": 10 ** 13}}}})
    assert store.get_set_result("tenses", "primary", 1)["percentage"] == 100


def test_prefetch_merges_and_marks_cache(store, api, session):
    api.fetch_progress.return_value = {
        "success": True,
        "data": {"sets": {"tenses": {"high": {"1": {"score": 4, "total": 4, "percentage": 100, "timestamp": 9}}}}},
    }
    api.get_student_details.return_value = {
        "success": True,
        "studentId": "STU001",
        "studentName": "Asha Roy",
        "schoolName": "Hill School",
        "profileImageURL": "https://img.example.com/a.png",
    }

    assert store.prefetch_dashboard_data() is True

    assert store.get_set_result("tenses", "high", 1)["percentage"] == 100
    meta = store.get_all()["_meta"]
    assert meta["schoolName"] == "Hill School"
    assert meta["profilePhoto"] == "https://img.example.com/a.png"
    assert meta["className"] == ""
    marker = session.get_json(DASHBOARD_CACHE_KEY)
    assert marker["valid"] is True
    assert marker["studentId"] == "STU001"
    api.fetch_progress.assert_called_once_with("STU001")


def test_prefetch_survives_failures(store, api):
    api.fetch_progress.side_effect = RuntimeError("boom")
    assert store.prefetch_dashboard_data("STU001") is True
    assert store.has_valid_cache() is True


def test_prefetch_timeout_covers_both_requests(local, session, api, clock):
    release = threading.Event()

    def slow_progress(student_id):
        time.sleep(0.15)
        return {"success": True, "data": {"sets": {"tenses": {"high": {"1": {"score": 3, "total": 4, "timestamp": 9}}}}}}

    def late_profile(student_id):
        release.wait(5)
        return {"success": True, "studentId": student_id, "studentName": "Late Profile"}

    api.fetch_progress.side_effect = slow_progress
    api.get_student_details.side_effect = late_profile
    store = ProgressStore(local, session, api=api, clock=clock, max_workers=2, prefetch_timeout=0.3)

    started = time.monotonic()
    try:
        assert store.prefetch_dashboard_data("STU001") is True
        elapsed = time.monotonic() - started
    finally:
        release.set()

    assert elapsed < 0.45
    assert store.get_set_result("tenses", "high", 1)["score"] == 3
    assert store.get_all().get("_meta", {}).get("studentName") != "Late Profile"
    assert store.has_valid_cache() is True


def test_prefetch_without_backend(local, session, api):
    api.backend_url = None
    assert ProgressStore(local, session, api=api).prefetch_dashboard_data() is False


def test_sync_is_cache_first(store, api):
    assert store.sync_from_backend() is True
    assert store.sync_from_backend() is True
    api.fetch_progress.assert_called_once()

    store.invalidate_cache()
    assert store.has_valid_cache() is False
    store.sync_from_backend()
    assert api.fetch_progress.call_count == 2


def test_concurrent_syncs_share_one_request(store, api):
    release = threading.Event()

    def slow_fetch(student_id):
        release.wait(5)
        return None

    api.fetch_progress.side_effect = slow_fetch
    results = []
    threads = [threading.Thread(target=lambda: results.append(store.sync_from_backend())) for _ in range(3)]
    for thread in threads:
        thread.start()
    time.sleep(0.2)
    release.set()
    for thread in threads:
        thread.join(5)

    assert results == [True, True, True]
    assert api.fetch_progress.call_count == 1


def test_clear_all_session_data(store, local, session):
    store.save_result("tenses", "primary", 1, 4, 5)
    local.set_item(STUDENT_ID_KEY, "STU001")
    local.set_json(SYNC_QUEUE_KEY, [{}])
    local.set_item("unrelated", "keep")
    session.set_json(DASHBOARD_CACHE_KEY, {"valid": True})

    store.clear_all_session_data()

    assert local.get_item(PROGRESS_KEY) is None
    assert local.get_item(STUDENT_ID_KEY) is None
    assert local.get_item(SYNC_QUEUE_KEY) is None
    assert local.get_item("unrelated") == "keep"
    assert store.has_valid_cache() is False
