"""
Student authentication endpoints.

Registration, login and the single-device session checks used by clients.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from grammarhub.api.deps import raise_for_failure
from grammarhub.db import schemas
from grammarhub.db.database import get_db
from grammarhub.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    result = AuthService(db).register(payload.name, payload.email, payload.password)
    return raise_for_failure(result)


@router.post("/login")
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    result = AuthService(db).login(payload.email, payload.password)
    return raise_for_failure(result, default_status=status.HTTP_401_UNAUTHORIZED)


@router.post("/check-session")
def check_session(payload: schemas.SessionCheckRequest, db: Session = Depends(get_db)):
    result = AuthService(db).check_session(payload.student_id, payload.session_token)
    # A mismatched or revoked token is an authentication failure.
    return raise_for_failure(result, default_status=status.HTTP_401_UNAUTHORIZED)


@router.post("/logout")
def logout(payload: schemas.SessionCheckRequest, db: Session = Depends(get_db)):
    result = AuthService(db).logout(payload.student_id, payload.session_token)
    return raise_for_failure(result)


@router.post("/validate-session")
def validate_session(payload: schemas.ValidateSessionRequest, db: Session = Depends(get_db)):
    result = AuthService(db).validate_session(payload.student_id, payload.token, payload.login_at)
    if "verified" in result:
        return result
    return raise_for_failure(result)
