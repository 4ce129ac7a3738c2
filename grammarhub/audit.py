"""
Audit logging helpers and enums.

Persists normalized audit records for account and approval events.
"""
from __future__ import annotations
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from grammarhub.db import schemas
from grammarhub.db.repositories import audits as audit_repo


class AuditAction(str, Enum):
    # Accounts
    STUDENT_REGISTER = "student_register"
    STUDENT_CREATE = "student_create"
    STUDENT_DETAILS_UPDATE = "student_details_update"
    # Approval
    STUDENT_APPROVE = "student_approve"
    STUDENT_BLOCK = "student_block"
    STUDENT_RESET_PENDING = "student_reset_pending"
    # Sessions
    SESSION_LOGIN = "session_login"
    SESSION_LOGOUT = "session_logout"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


STATUS_ACTIONS = {
    'approved': AuditAction.STUDENT_APPROVE,
    'blocked': AuditAction.STUDENT_BLOCK,
    'pending': AuditAction.STUDENT_RESET_PENDING,
}


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[str] = None,
    actor: str,
    metadata: Optional[Dict[str, Any]] = None,
):
    """Central audit logging helper."""
    # Persist plain string values, not Enum reprs
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(db, audit_log=audit_log, actor=actor)


def log_student(
    db: Session,
    *,
    actor: str,
    student_id: str,
    action: AuditAction,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    metadata: Optional[Dict[str, Any]] = None,
):
    return log(
        db,
        action=action,
        status=status,
        target_type="student",
        target_id=student_id,
        actor=actor,
        metadata=metadata,
    )


__all__ = ["AuditAction", "AuditStatus", "STATUS_ACTIONS", "log", "log_student"]
