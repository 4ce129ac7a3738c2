"""
Dashboard read endpoints: aggregated progress and profile details.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from grammarhub.api.deps import raise_for_failure
from grammarhub.db.database import get_db
from grammarhub.services.progress_service import ProgressService

router = APIRouter(tags=["progress"])


@router.get("/progress/{student_id}")
def get_progress(student_id: str, db: Session = Depends(get_db)):
    return ProgressService(db).get_student_progress(student_id)


@router.get("/profile/{student_id}")
def get_profile(student_id: str, db: Session = Depends(get_db)):
    result = ProgressService(db).get_student_profile(student_id)
    return raise_for_failure(result, default_status=status.HTTP_404_NOT_FOUND)
