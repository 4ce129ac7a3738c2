"""
Approval service: admin review of registrations and profile maintenance.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from grammarhub.audit import STATUS_ACTIONS, AuditAction, log_student
from grammarhub.db import models
from grammarhub.db.repositories import details as details_repo
from grammarhub.db.repositories import registration as registration_repo
from grammarhub.services.cache import TTLCache, get_script_cache, profile_key

logger = logging.getLogger(__name__)

ALLOWED_STATUSES = ('approved', 'blocked', 'pending')
# Moving to one of these forces the student's next session check to fail.
REVOKING_STATUSES = ('blocked', 'pending')


def serialize_registration(row: models.Registration) -> Dict[str, Any]:
    return {
        'studentId': row.student_id,
        'studentName': row.student_name,
        'email': row.email,
        'status': row.status,
        'role': row.role,
        'createdAt': row.created_at.isoformat() if row.created_at else None,
        'lastLogin': row.last_login.isoformat() if row.last_login else None,
        'hasActiveSession': bool(row.active_session_token),
    }


class ApprovalService:
    """Service class for admin approval workflows."""

    def __init__(self, db: Session, cache: Optional[TTLCache] = None):
        self.db = db
        self.cache = cache or get_script_cache()

    def list_students(self, status: Optional[str] = 'pending', skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        """List registrations with the given status; ``None`` lists everyone."""
        rows = registration_repo.list_by_status(self.db, status, skip, limit)
        return [serialize_registration(row) for row in rows]

    def set_status(self, student_id: str, status: Optional[str], actor: str) -> Dict[str, Any]:
        new_status = str(status or '').strip().lower()
        if new_status not in ALLOWED_STATUSES:
            return {'success': False, 'message': f"Invalid status '{status}'.", 'code': 'invalid_status'}

        row = registration_repo.get_by_student_id(self.db, student_id)
        if row is None:
            return {'success': False, 'message': 'Student not found.', 'code': 'not_found'}

        previous = str(row.status or '').strip().lower()
        if previous == new_status:
            return {'success': True, 'changed': False, 'student': serialize_registration(row)}

        row = registration_repo.set_status(
            self.db,
            row,
            new_status,
            clear_session=new_status in REVOKING_STATUSES,
        )
        log_student(
            self.db,
            actor=actor,
            student_id=student_id,
            action=STATUS_ACTIONS[new_status],
            metadata={'old_status': previous, 'new_status': new_status},
        )
        logger.info(
            "student_status_changed",
            extra={"student_id": student_id, "old_status": previous, "new_status": new_status, "actor": actor},
        )
        return {'success': True, 'changed': True, 'student': serialize_registration(row)}

    def update_details(self, student_id: str, actor: str, student_name: Optional[str] = None, **fields) -> Dict[str, Any]:
        """Create or update the profile row shown on the student's dashboard."""
        registration = registration_repo.get_by_student_id(self.db, student_id)
        if registration is None and not student_name:
            return {'success': False, 'message': 'Student not found.', 'code': 'not_found'}
        name = student_name or registration.student_name
        details_repo.upsert(self.db, student_id, name, **fields)
        self.cache.remove(profile_key(student_id))
        log_student(self.db, actor=actor, student_id=student_id, action=AuditAction.STUDENT_DETAILS_UPDATE)
        return {'success': True, 'studentId': student_id}
