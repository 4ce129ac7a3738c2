"""
Dashboard aggregation over the results and details sheets.

The progress payload carries server-computed overview numbers plus a nested
``sets`` map (subject -> level -> set -> best entry) that clients merge into
their local progress store.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from grammarhub.db import models
from grammarhub.db.repositories import details as details_repo
from grammarhub.db.repositories import results as results_repo
from grammarhub.services.cache import TTLCache, get_script_cache, profile_key, progress_key
from grammarhub.utils.feature_flags import progress_cache_enabled
from grammarhub.utils.rounding import round_half_up
from grammarhub.utils.settings import get_settings

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 5
NO_TOP_SUBJECT = 'None'


def _number(value: Any):
    """Coerce a cell to a number, keeping integral values as ``int``."""
    try:
        num = float(value or 0)
    except (TypeError, ValueError):
        return 0
    return int(num) if num.is_integer() else num


def result_entry(row: models.Result) -> Dict[str, Any]:
    return {
        'subject': row.subject,
        'level': row.level,
        'set': str(row.practice_set),
        'score': _number(row.score),
        'total': _number(row.total),
        'percentage': _number(row.percentage),
        'timeTaken': _number(row.time_taken),
        'date': row.date or '',
        'timestamp': _number(row.timestamp),
    }


def summarize_results(entries: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Build the dashboard payload from a student's result entries in sheet order."""
    best_by_set: Dict[str, Dict[str, Any]] = {}
    for entry in entries:
        key = f"{entry['subject']}|{entry['level']}|{entry['set']}"
        existing = best_by_set.get(key)
        # Later rows win ties.
        if existing is None or entry['percentage'] >= existing['percentage']:
            best_by_set[key] = entry

    best_entries = list(best_by_set.values())
    total_sets = len(best_entries)
    total_score = 0
    total_time = 0
    by_subject: Dict[str, Dict[str, float]] = {}
    sets: Dict[str, Dict[str, Dict[str, Any]]] = {}

    for entry in best_entries:
        total_score += entry['percentage']
        total_time += entry['timeTaken']
        info = by_subject.setdefault(entry['subject'], {'totalPct': 0, 'count': 0, 'totalTime': 0})
        info['totalPct'] += entry['percentage']
        info['count'] += 1
        info['totalTime'] += entry['timeTaken']
        sets.setdefault(entry['subject'], {}).setdefault(entry['level'], {})[entry['set']] = {
            'score': entry['score'],
            'total': entry['total'],
            'percentage': entry['percentage'],
            'timeTaken': entry['timeTaken'],
            'date': entry['date'],
            'timestamp': entry['timestamp'],
        }

    average_score = round_half_up(total_score / total_sets) if total_sets else 0

    top_subject = NO_TOP_SUBJECT
    top_score = 0
    breakdown = []
    for subject, info in by_subject.items():
        avg = round_half_up(info['totalPct'] / info['count'])
        if avg > top_score:
            top_score = avg
            top_subject = subject
        breakdown.append({
            'subject': subject,
            'setsCompleted': info['count'],
            'avgScore': avg,
            'totalTime': info['totalTime'],
        })
    breakdown.sort(key=lambda item: item['avgScore'], reverse=True)

    recent = sorted(entries, key=lambda item: item['timestamp'] or 0, reverse=True)[:RECENT_ACTIVITY_LIMIT]

    return {
        'overview': {
            'averageScore': average_score,
            'totalSets': total_sets,
            'overallScore': average_score,
            'totalTimeSpent': total_time,
            'activeSubjects': len(by_subject),
            'topSubject': top_subject,
        },
        'recentActivities': recent,
        'subjectBreakdown': breakdown,
        'sets': sets,
    }


def serialize_details(row: models.StudentDetails) -> Dict[str, Any]:
    return {
        'success': True,
        'studentId': row.student_id,
        'studentName': row.student_name,
        'schoolName': row.school_name or '',
        'className': row.class_name or '',
        'profileImageURL': row.profile_image_url or '',
        'guardianName': row.guardian_name or '',
        'contactNumber': row.contact_number or '',
        'address': row.address or '',
        'createdAt': row.created_at.isoformat() if row.created_at else None,
    }


class ProgressService:
    def __init__(self, db: Session, cache: Optional[TTLCache] = None):
        self.db = db
        self.cache = cache or get_script_cache()

    def _cached(self, key: str) -> Optional[Dict[str, Any]]:
        if not progress_cache_enabled():
            return None
        return self.cache.get(key)

    def _store(self, key: str, value: Dict[str, Any]) -> None:
        if progress_cache_enabled():
            self.cache.put(key, value, get_settings().progress_cache_ttl_seconds)

    def get_student_progress(self, student_id: str) -> Dict[str, Any]:
        key = progress_key(student_id)
        cached = self._cached(key)
        if cached is not None:
            return cached

        entries = [result_entry(row) for row in results_repo.list_for_student(self.db, student_id)]
        result = {'success': True, 'data': summarize_results(entries)}
        self._store(key, result)
        logger.debug("progress_computed", extra={"student_id": student_id, "rows": len(entries)})
        return result

    def get_student_profile(self, student_id: str) -> Dict[str, Any]:
        key = profile_key(student_id)
        cached = self._cached(key)
        if cached is not None:
            return cached

        row = details_repo.get_by_student_id(self.db, student_id)
        if row is None:
            return {'success': False, 'error': 'Student details not found.'}
        result = serialize_details(row)
        self._store(key, result)
        return result
