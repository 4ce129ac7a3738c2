"""
Audit log repository functions.
"""
from __future__ import annotations

from typing import List, Optional
from sqlalchemy.orm import Session

from grammarhub.db import schemas, models


def create_audit_log(db: Session, audit_log: schemas.AuditLogCreate, actor: str) -> models.AuditLog:
    values = audit_log.model_dump()
    row = models.AuditLog(
        actor=actor,
        action_type=values['action_type'],
        status=values['status'],
        target_type=values['target_type'],
        target_id=values['target_id'],
        metadata_json=values['metadata'],
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_audit_logs(
    db: Session,
    target_id: Optional[str] = None,
    action_type: Optional[str] = None,
    actor: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.AuditLog]:
    """Newest first; every filter is optional."""
    query = db.query(models.AuditLog)
    if target_id:
        query = query.filter(models.AuditLog.target_id == target_id)
    if action_type:
        query = query.filter(models.AuditLog.action_type == action_type)
    if actor:
        query = query.filter(models.AuditLog.actor == actor)
    return query.order_by(models.AuditLog.created_at.desc()).offset(skip).limit(limit).all()
