"""
Results sheet repository functions.
"""
from __future__ import annotations

from typing import Optional, List
from sqlalchemy.orm import Session

from grammarhub.db import models


def find_duplicate(
    db: Session,
    student_id: str,
    subject: str,
    level: str,
    practice_set: str,
    timestamp: Optional[int],
) -> Optional[models.Result]:
    """Return an existing row with the same identity and timestamp.

    Rows without a timestamp can never be matched.
    """
    if not timestamp:
        return None
    return (
        db.query(models.Result)
        .filter(
            models.Result.student_id == student_id,
            models.Result.subject == subject,
            models.Result.level == level,
            models.Result.practice_set == practice_set,
            models.Result.timestamp == timestamp,
        )
        .first()
    )


def append_row(db: Session, **values) -> models.Result:
    row = models.Result(**values)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_for_student(db: Session, student_id: str) -> List[models.Result]:
    return (
        db.query(models.Result)
        .filter(models.Result.student_id == student_id)
        .order_by(models.Result.row_number.asc())
        .all()
    )


def ensure_roster_student(db: Session, student_id: str, student_name: str) -> models.RosterStudent:
    """Keep the legacy roster in step with result submissions."""
    existing = db.query(models.RosterStudent).filter(models.RosterStudent.student_id == student_id).first()
    if existing:
        return existing
    row = models.RosterStudent(student_id=student_id, student_name=student_name)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
