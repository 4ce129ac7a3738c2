"""
Pydantic request/response schemas grouped by domain.
"""

from .auth import (
    RegisterRequest,
    LoginRequest,
    SessionCheckRequest,
    ValidateSessionRequest,
)
from .results import ResultCreate
from .students import (
    StudentCreate,
    StudentStatusUpdate,
    StudentDetailsUpdate,
)
from .audits import AuditLogCreate

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "SessionCheckRequest",
    "ValidateSessionRequest",
    "ResultCreate",
    "StudentCreate",
    "StudentStatusUpdate",
    "StudentDetailsUpdate",
    "AuditLogCreate",
]
