from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class StudentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(alias="studentId")
    student_name: str = Field(alias="studentName")
    email: str
    password: str


class StudentStatusUpdate(BaseModel):
    status: str


class StudentDetailsUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_name: Optional[str] = Field(default=None, alias="studentName")
    school_name: str = Field(default="", alias="schoolName")
    class_name: str = Field(default="", alias="className")
    profile_image_url: str = Field(default="", alias="profileImageURL")
    guardian_name: str = Field(default="", alias="guardianName")
    contact_number: str = Field(default="", alias="contactNumber")
    address: str = ""

