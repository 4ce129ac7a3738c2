from sqlalchemy import Column, Integer, BigInteger, Float, Text, Index
from .base import Base


class Result(Base):
    """One row of the RESULTS sheet. Rows are append-only."""
    __tablename__ = 'results'
    row_number = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Text, nullable=False, index=True)
    student_name = Column(Text, nullable=False)
    subject = Column(Text, nullable=False)
    level = Column(Text, nullable=False)
    practice_set = Column('set', Text, nullable=False)
    score = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    percentage = Column(Integer, nullable=False, default=0)
    time_taken = Column(Integer, nullable=False, default=0)
    date = Column(Text, nullable=True)
    timestamp = Column(BigInteger, nullable=True)

    __table_args__ = (
        Index('ix_results_dedupe', 'student_id', 'subject', 'level', 'set', 'timestamp'),
    )
