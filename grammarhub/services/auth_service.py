"""
Authentication service: self-registration, login, single-device sessions.

Every public method returns a result dictionary with a ``success`` flag;
routers decide which HTTP status a failure maps to.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from grammarhub.audit import AuditAction, log_student
from grammarhub.db.repositories import registration as registration_repo
from grammarhub.utils.feature_flags import self_registration_enabled
from grammarhub.utils.passwords import generate_salt, generate_session_token, hash_password, verify_password

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 4
STUDENT_ID_PREFIX = 'STU'

PENDING_MESSAGE = 'Registration successful! Your account is pending teacher approval.'
INVALID_CREDENTIALS = 'Invalid email or password.'


class StudentExistsError(ValueError):
    """Raised when an admin creates a student whose email or id is taken."""


def next_student_id(last_student_id: Optional[str]) -> str:
    """Increment the numeric part of the most recent id (``STU007`` -> ``STU008``)."""
    digits = re.sub(r'\D', '', str(last_student_id or ''))
    number = int(digits) if digits else 0
    return f"{STUDENT_ID_PREFIX}{number + 1:03d}"


def _status_of(row) -> str:
    return str(row.status or '').strip().lower()


class AuthService:
    """Service class for student account and session operations."""

    def __init__(self, db: Session):
        self.db = db

    def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        if not self_registration_enabled():
            return {'success': False, 'error': 'Self-registration is disabled.', 'code': 'registration_disabled'}
        if not name or not email or not password:
            return {'success': False, 'error': 'Name, email, and password are required.', 'code': 'missing_fields'}

        name = str(name).strip()
        email = registration_repo.normalize_email(email)
        password = str(password)

        if len(name) < MIN_NAME_LENGTH:
            return {'success': False, 'error': 'Name must be at least 2 characters.'}
        if len(password) < MIN_PASSWORD_LENGTH:
            return {'success': False, 'error': 'Password must be at least 4 characters.'}
        if not EMAIL_PATTERN.match(email):
            return {'success': False, 'error': 'Invalid email format.'}

        if registration_repo.get_by_email(self.db, email):
            return {'success': False, 'error': 'This email is already registered.', 'code': 'duplicate'}

        last_row = registration_repo.get_last_row(self.db)
        student_id = next_student_id(last_row.student_id if last_row else None)
        salt = generate_salt()
        registration_repo.append_row(
            self.db,
            student_id=student_id,
            student_name=name,
            email=email,
            password_hash=hash_password(password, salt),
            salt=salt,
            status='pending',
            role='student',
        )
        log_student(self.db, actor=student_id, student_id=student_id, action=AuditAction.STUDENT_REGISTER)
        logger.info("student_registered", extra={"student_id": student_id})
        return {'success': True, 'studentId': student_id, 'message': PENDING_MESSAGE}

    def login(self, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        if not email or not password:
            return {'success': False, 'error': 'Email and password are required.', 'code': 'missing_fields'}

        row = registration_repo.get_by_email(self.db, email)
        if row is None:
            return {'success': False, 'error': INVALID_CREDENTIALS, 'code': 'invalid_credentials'}

        status = _status_of(row)
        if status in ('pending', 'blocked'):
            return {'success': False, 'status': status, 'code': 'not_approved'}
        if status != 'approved':
            return {'success': False, 'error': 'Account not approved.', 'code': 'not_approved'}

        if not verify_password(str(password), row.salt, row.password_hash):
            return {'success': False, 'error': INVALID_CREDENTIALS, 'code': 'invalid_credentials'}

        session_token = generate_session_token()
        registration_repo.update_login(self.db, row, session_token)
        log_student(self.db, actor=row.student_id, student_id=row.student_id, action=AuditAction.SESSION_LOGIN)
        return {
            'success': True,
            'studentId': row.student_id,
            'studentName': row.student_name,
            'email': row.email,
            'sessionToken': session_token,
            'role': row.role or 'student',
        }

    def check_session(self, student_id: Optional[str], session_token: Optional[str]) -> Dict[str, Any]:
        """Single-device enforcement: only the most recent login's token is valid."""
        if not student_id or not session_token:
            return {'success': False, 'error': 'Missing session data.', 'code': 'missing_fields'}
        row = registration_repo.get_by_student_id(self.db, student_id)
        if row is None:
            return {'success': False, 'reason': 'not_found'}
        status = _status_of(row)
        if status != 'approved':
            return {'success': False, 'reason': f'account_{status}'}
        if (row.active_session_token or '') != session_token:
            return {'success': False, 'reason': 'another_device'}
        return {'success': True}

    def logout(self, student_id: Optional[str], session_token: Optional[str]) -> Dict[str, Any]:
        if not student_id or not session_token:
            return {'success': False, 'error': 'Missing session data.', 'code': 'missing_fields'}
        row = registration_repo.get_by_student_id(self.db, student_id)
        # Only the holder of the current token may clear it.
        if row is not None and (row.active_session_token or '') == session_token:
            registration_repo.set_session_token(self.db, row, None)
            log_student(self.db, actor=student_id, student_id=student_id, action=AuditAction.SESSION_LOGOUT)
        return {'success': True}

    def validate_session(self, student_id: Optional[str], token: Optional[str], login_at: Optional[str]) -> Dict[str, Any]:
        if not student_id or not token or not login_at:
            return {'success': False, 'error': 'Invalid session data.', 'code': 'missing_fields'}
        verified = self.is_verified(student_id)
        return {'success': verified, 'verified': verified}

    def is_verified(self, student_id: str) -> bool:
        """True when the student exists and is approved."""
        row = registration_repo.get_by_student_id(self.db, student_id)
        return row is not None and _status_of(row) == 'approved'

    def create_student(
        self,
        student_id: str,
        student_name: str,
        email: str,
        password: str,
        *,
        actor: str = 'admin',
        role: str = 'student',
    ) -> Dict[str, Any]:
        """Create an already-approved account with an explicit id.

        Raises StudentExistsError on a duplicate email or id.
        """
        normalized = registration_repo.normalize_email(email)
        if registration_repo.get_by_email(self.db, normalized):
            raise StudentExistsError(f'Email already registered: {normalized}')
        if registration_repo.get_by_student_id(self.db, student_id):
            raise StudentExistsError(f'Student ID already exists: {student_id}')

        salt = generate_salt()
        registration_repo.append_row(
            self.db,
            student_id=student_id,
            student_name=student_name,
            email=normalized,
            password_hash=hash_password(password, salt),
            salt=salt,
            status='approved',
            role=role,
        )
        log_student(self.db, actor=actor, student_id=student_id, action=AuditAction.STUDENT_CREATE,
                    metadata={'email': normalized})
        logger.info("Student created: %s (%s)", student_id, normalized)
        return {'success': True, 'studentId': student_id}
