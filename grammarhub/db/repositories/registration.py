"""
Registration sheet repository functions.

Lookups by email and student id, appends, cell updates and status listings.
"""
from __future__ import annotations

from typing import Optional, List
from sqlalchemy import func
from sqlalchemy.orm import Session

from grammarhub.db import models


def normalize_email(email: Optional[str]) -> str:
    return str(email or "").strip().lower()


def get_by_email(db: Session, email: str) -> Optional[models.Registration]:
    return (
        db.query(models.Registration)
        .filter(func.lower(models.Registration.email) == normalize_email(email))
        .first()
    )


def get_by_student_id(db: Session, student_id: str) -> Optional[models.Registration]:
    return db.query(models.Registration).filter(models.Registration.student_id == student_id).first()


def get_last_row(db: Session) -> Optional[models.Registration]:
    return db.query(models.Registration).order_by(models.Registration.row_number.desc()).first()


def list_by_status(db: Session, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[models.Registration]:
    query = db.query(models.Registration)
    if status:
        query = query.filter(func.lower(models.Registration.status) == status.lower())
    return query.order_by(models.Registration.row_number.asc()).offset(skip).limit(limit).all()


def append_row(
    db: Session,
    *,
    student_id: str,
    student_name: str,
    email: str,
    password_hash: str,
    salt: str,
    status: str = 'pending',
    role: str = 'student',
) -> models.Registration:
    row = models.Registration(
        student_id=student_id,
        student_name=student_name,
        email=normalize_email(email),
        password_hash=password_hash,
        salt=salt,
        status=status,
        role=role,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_login(db: Session, row: models.Registration, session_token: str) -> models.Registration:
    row.last_login = models.now_utc()
    row.active_session_token = session_token
    db.commit()
    db.refresh(row)
    return row


def set_session_token(db: Session, row: models.Registration, session_token: Optional[str]) -> models.Registration:
    row.active_session_token = session_token or None
    db.commit()
    db.refresh(row)
    return row


def set_status(db: Session, row: models.Registration, status: str, *, clear_session: bool = False) -> models.Registration:
    row.status = status
    if clear_session:
        row.active_session_token = None
    db.commit()
    db.refresh(row)
    return row


def get_by_session_token(db: Session, session_token: str) -> Optional[models.Registration]:
    if not session_token:
        return None
    return (
        db.query(models.Registration)
        .filter(models.Registration.active_session_token == session_token)
        .first()
    )
