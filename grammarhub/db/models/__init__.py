"""
Spreadsheet-shaped SQLAlchemy models.

Each sheet of the workbook maps to one table; ``row_number`` keeps
the append order so "last row" queries behave like the sheet.
"""

from .base import Base, now_utc, now_iso, now_ms  # re-export

from .registration import Registration
from .results import Result
from .details import StudentDetails, RosterStudent
from .audit import AuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    "now_iso",
    "now_ms",
    # sheets
    "Registration",
    "Result",
    "StudentDetails",
    "RosterStudent",
    # audit
    "AuditLog",
]
