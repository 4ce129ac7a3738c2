from sqlalchemy import Column, Integer, Text, DateTime
from .base import Base, now_utc


class Registration(Base):
    """One row of the REGISTRATION sheet: credentials, approval status and the active session."""
    __tablename__ = 'registration'
    row_number = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Text, nullable=False, unique=True, index=True)
    student_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    salt = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default='pending')  # pending|approved|blocked
    role = Column(Text, nullable=False, default='student')  # student|admin
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    active_session_token = Column(Text, nullable=True)
