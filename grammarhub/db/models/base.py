"""
Shared SQLAlchemy base and helpers.
"""
from datetime import datetime, UTC

from sqlalchemy.orm import declarative_base


def now_utc():
    """Return an aware UTC datetime for default/updated timestamps."""
    return datetime.now(UTC)


def now_iso() -> str:
    """ISO-8601 UTC string with millisecond precision, as browsers emit it."""
    return now_utc().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(now_utc().timestamp() * 1000)


Base = declarative_base()
