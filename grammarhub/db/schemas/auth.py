from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class SessionCheckRequest(BaseModel):
    """Body of check-session and logout calls."""
    model_config = ConfigDict(populate_by_name=True)

    student_id: Optional[str] = Field(default=None, alias="studentId")
    session_token: Optional[str] = Field(default=None, alias="sessionToken")


class ValidateSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: Optional[str] = Field(default=None, alias="studentId")
    token: Optional[str] = None
    login_at: Optional[str] = Field(default=None, alias="loginAt")
