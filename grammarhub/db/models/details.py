from sqlalchemy import Column, Integer, Text, DateTime
from .base import Base, now_utc


class StudentDetails(Base):
    """One row of the STUDENT_DETAILS sheet (profile data maintained by admins)."""
    __tablename__ = 'student_details'
    row_number = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Text, nullable=False, index=True)
    student_name = Column(Text, nullable=False)
    school_name = Column(Text, nullable=False, default='')
    class_name = Column(Text, nullable=False, default='')
    profile_image_url = Column(Text, nullable=False, default='')
    guardian_name = Column(Text, nullable=False, default='')
    contact_number = Column(Text, nullable=False, default='')
    address = Column(Text, nullable=False, default='')
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)


class RosterStudent(Base):
    """Legacy STUDENTS sheet; kept in sync when results are saved."""
    __tablename__ = 'students'
    row_number = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Text, nullable=False, unique=True, index=True)
    student_name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
