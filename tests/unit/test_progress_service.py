from grammarhub.db.repositories import details as details_repo
from grammarhub.db.repositories import results as results_repo
from grammarhub.services.cache import TTLCache
from grammarhub.services.progress_service import ProgressService, summarize_results
from grammarhub.utils.feature_flags import refresh_feature_flag_cache


def _entry(subject, level, set_id, pct, timestamp, time_taken=30):
    return {
        "subject": subject,
        "level": level,
        "set": set_id,
        "score": pct // 10,
        "total": 10,
        "percentage": pct,
        "timeTaken": time_taken,
        "date": "2026-10-19T08:00:00.000Z",
        "timestamp": timestamp,
    }


def _append(db, subject, level, set_id, pct, timestamp, time_taken=30, student_id="STU001"):
    results_repo.append_row(
        db,
        student_id=student_id,
        student_name="Asha Roy",
        subject=subject,
        level=level,
        practice_set=set_id,
        score=pct / 10,
        total=10,
        percentage=pct,
        time_taken=time_taken,
        date="2026-10-19T08:00:00.000Z",
        timestamp=timestamp,
    )


class TestSummarizeResults:
    def test_empty(self):
        data = summarize_results([])
        assert data["overview"] == {
            "averageScore": 0,
            "totalSets": 0,
            "overallScore": 0,
            "totalTimeSpent": 0,
            "activeSubjects": 0,
            "topSubject": "None",
        }
        assert data["recentActivities"] == []
        assert data["subjectBreakdown"] == []
        assert data["sets"] == {}

    def test_best_attempt_per_set_drives_overview(self):
        entries = [
            _entry("tenses", "primary", "1", 60, 1, time_taken=10),
            _entry("tenses", "primary", "1", 90, 2, time_taken=20),
            _entry("tenses", "primary", "2", 70, 3, time_taken=30),
            _entry("articles", "high", "1", 95, 4, time_taken=40),
        ]

        data = summarize_results(entries)

        overview = data["overview"]
        assert overview["totalSets"] == 3
        # (90 + 70 + 95) / 3 = 85
        assert overview["averageScore"] == 85
        assert overview["overallScore"] == 85
        assert overview["totalTimeSpent"] == 90
        assert overview["activeSubjects"] == 2
        assert overview["topSubject"] == "articles"
        assert [row["subject"] for row in data["subjectBreakdown"]] == ["articles", "tenses"]
        assert data["subjectBreakdown"][1] == {
            "subject": "tenses",
            "setsCompleted": 2,
            "avgScore": 80,
            "totalTime": 50,
        }
        assert data["sets"]["tenses"]["primary"]["1"]["percentage"] == 90

    def test_later_rows_win_ties(self):
        entries = [
            _entry("tenses", "primary", "1", 80, 1, time_taken=10),
            _entry("tenses", "primary", "1", 80, 2, time_taken=99),
        ]
        best = summarize_results(entries)["sets"]["tenses"]["primary"]["1"]
        assert best["timestamp"] == 2
        assert best["timeTaken"] == 99

    def test_recent_activities_are_latest_five_of_all_attempts(self):
        entries = [_entry("tenses", "primary", "1", 50 + i, i) for i in range(1, 8)]
        recent = summarize_results(entries)["recentActivities"]
        assert [item["timestamp"] for item in recent] == [7, 6, 5, 4, 3]

    def test_average_rounds_half_up(self):
        entries = [_entry("tenses", "primary", "1", 72, 1), _entry("tenses", "primary", "2", 73, 2)]
        assert summarize_results(entries)["overview"]["averageScore"] == 73


class TestProgressService:
    def test_progress_reads_rows_and_caches(self, db_session):
        _append(db_session, "tenses", "primary", "1", 80, 100)
        cache = TTLCache()
        service = ProgressService(db_session, cache=cache)

        first = service.get_student_progress("STU001")
        assert first["success"] is True
        assert first["data"]["sets"]["tenses"]["primary"]["1"]["score"] == 8
        assert first["data"]["overview"]["totalSets"] == 1

        _append(db_session, "tenses", "primary", "2", 60, 200)
        assert service.get_student_progress("STU001") == first

    def test_cache_can_be_disabled(self, db_session, monkeypatch):
        monkeypatch.setenv("FEATURE_PROGRESS_CACHE_ENABLED", "false")
        refresh_feature_flag_cache()
        cache = TTLCache()
        service = ProgressService(db_session, cache=cache)

        service.get_student_progress("STU001")
        _append(db_session, "tenses", "primary", "1", 80, 100)

        assert service.get_student_progress("STU001")["data"]["overview"]["totalSets"] == 1
        assert len(cache) == 0

    def test_cache_ttl_from_settings(self, db_session, monkeypatch):
        monkeypatch.setenv("PROGRESS_CACHE_TTL_SECONDS", "0")
        cache = TTLCache()
        ProgressService(db_session, cache=cache).get_student_progress("STU001")
        assert len(cache) == 0

    def test_unknown_student_has_empty_dashboard(self, db_session):
        data = ProgressService(db_session, cache=TTLCache()).get_student_progress("STU404")["data"]
        assert data["overview"]["totalSets"] == 0
        assert data["overview"]["topSubject"] == "None"

    def test_profile(self, db_session):
        details_repo.append_row(db_session, "STU001", "Asha Roy", school_name="Hill School", class_name="6")
        service = ProgressService(db_session, cache=TTLCache())

        profile = service.get_student_profile("STU001")

        assert profile["success"] is True
        assert profile["studentName"] == "Asha Roy"
        assert profile["schoolName"] == "Hill School"
        assert profile["className"] == "6"
        assert profile["guardianName"] == ""

    def test_missing_profile(self, db_session):
        result = ProgressService(db_session, cache=TTLCache()).get_student_profile("STU404")
        assert result == {"success": False, "error": "Student details not found."}
