"""
Admin endpoints: review registrations, create accounts, maintain profiles.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from grammarhub.api.deps import raise_for_failure, require_admin
from grammarhub.db import schemas
from grammarhub.db.database import get_db
from grammarhub.services.approval_service import ALLOWED_STATUSES, ApprovalService
from grammarhub.services.auth_service import AuthService, StudentExistsError

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/students")
def list_students(
    status_filter: Optional[str] = Query(default="pending", alias="status"),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    actor: str = Depends(require_admin),
):
    if status_filter in ("", "all"):
        status_filter = None
    elif status_filter and status_filter.lower() not in ALLOWED_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid status '{status_filter}'")
    students = ApprovalService(db).list_students(status_filter, skip=skip, limit=limit)
    return {"success": True, "students": students}


@router.patch("/students/{student_id}")
def update_student_status(
    student_id: str,
    payload: schemas.StudentStatusUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(require_admin),
):
    result = ApprovalService(db).set_status(student_id, payload.status, actor)
    return raise_for_failure(result)


@router.post("/students", status_code=status.HTTP_201_CREATED)
def create_student(
    payload: schemas.StudentCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(require_admin),
):
    try:
        return AuthService(db).create_student(
            payload.student_id,
            payload.student_name,
            payload.email,
            payload.password,
            actor=actor,
        )
    except StudentExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.put("/students/{student_id}/details")
def update_student_details(
    student_id: str,
    payload: schemas.StudentDetailsUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(require_admin),
):
    fields = payload.model_dump(exclude={"student_name"})
    result = ApprovalService(db).update_details(student_id, actor, payload.student_name, **fields)
    return raise_for_failure(result)
