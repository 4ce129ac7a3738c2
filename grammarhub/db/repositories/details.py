"""
Student details repository functions.
"""
from __future__ import annotations

from typing import Optional
from sqlalchemy.orm import Session

from grammarhub.db import models

_DETAIL_FIELDS = (
    'school_name',
    'class_name',
    'profile_image_url',
    'guardian_name',
    'contact_number',
    'address',
)


def get_by_student_id(db: Session, student_id: str) -> Optional[models.StudentDetails]:
    # First matching row wins, as a sheet scan would.
    return (
        db.query(models.StudentDetails)
        .filter(models.StudentDetails.student_id == student_id)
        .order_by(models.StudentDetails.row_number.asc())
        .first()
    )


def append_row(db: Session, student_id: str, student_name: str, **fields) -> models.StudentDetails:
    values = {name: fields.get(name) or '' for name in _DETAIL_FIELDS}
    row = models.StudentDetails(student_id=student_id, student_name=student_name, **values)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def upsert(db: Session, student_id: str, student_name: Optional[str], **fields) -> models.StudentDetails:
    row = get_by_student_id(db, student_id)
    if row is None:
        return append_row(db, student_id, student_name or '', **fields)
    if student_name:
        row.student_name = student_name
    for name in _DETAIL_FIELDS:
        if name in fields and fields[name] is not None:
            setattr(row, name, fields[name])
    db.commit()
    db.refresh(row)
    return row
