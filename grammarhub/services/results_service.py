"""
Results service: validate and append quiz results.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from grammarhub.db import models, schemas
from grammarhub.db.repositories import results as results_repo
from grammarhub.services.auth_service import AuthService
from grammarhub.services.cache import TTLCache, get_script_cache, progress_key
from grammarhub.utils.rounding import percentage as compute_percentage, round_half_up

logger = logging.getLogger(__name__)

ANONYMOUS_ID = 'anonymous'
ANONYMOUS_NAME = 'Anonymous'


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ResultsService:
    def __init__(self, db: Session, cache: Optional[TTLCache] = None):
        self.db = db
        self.cache = cache or get_script_cache()

    def save_result(self, payload: schemas.ResultCreate) -> Dict[str, Any]:
        if (
            not payload.subject
            or not payload.level
            or not payload.set
            or not _is_number(payload.score)
            or not _is_number(payload.total)
        ):
            return {'success': False, 'error': 'Missing required fields.', 'code': 'missing_fields'}

        student_id = payload.student_id or ANONYMOUS_ID
        student_name = payload.student_name or ANONYMOUS_NAME

        if student_id != ANONYMOUS_ID and not AuthService(self.db).is_verified(student_id):
            return {'success': False, 'error': 'Student not verified.', 'code': 'not_verified'}

        practice_set = str(payload.set)
        duplicate = results_repo.find_duplicate(
            self.db, student_id, payload.subject, payload.level, practice_set, payload.timestamp
        )
        if duplicate is not None:
            return {'success': True, 'message': 'Duplicate — already saved.', 'duplicate': True}

        results_repo.ensure_roster_student(self.db, student_id, student_name)

        if payload.percentage:
            pct = round_half_up(payload.percentage)
        else:
            pct = compute_percentage(payload.score, payload.total)
        results_repo.append_row(
            self.db,
            student_id=student_id,
            student_name=student_name,
            subject=payload.subject,
            level=payload.level,
            practice_set=practice_set,
            score=payload.score,
            total=payload.total,
            percentage=pct,
            time_taken=payload.time_taken or 0,
            date=payload.date or models.now_iso(),
            timestamp=payload.timestamp or models.now_ms(),
        )
        self.cache.remove(progress_key(student_id))
        logger.info(
            "result_saved",
            extra={"student_id": student_id, "subject": payload.subject, "level": payload.level, "set": practice_set},
        )
        return {'success': True, 'message': 'Result saved.'}
