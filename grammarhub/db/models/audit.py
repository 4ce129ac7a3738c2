import uuid
from sqlalchemy import Column, Text, DateTime, JSON, Uuid
from .base import Base, now_utc


class AuditLog(Base):
    __tablename__ = 'audit_logs'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor = Column(Text, nullable=False)  # student id, admin id or "api-key"
    action_type = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    target_type = Column(Text, nullable=False)
    target_id = Column(Text, nullable=True)
    metadata_json = Column('metadata', JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
