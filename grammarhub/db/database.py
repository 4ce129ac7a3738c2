"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration with a test
fallback (SQLite in-memory) and exposes FastAPI dependencies.
"""
import os
import sys
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DATABASE_URL = "sqlite:///./grammarhub.db"


def _get_database_url() -> str:
    return os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while a test runs, so module import
    during collection is detected through ``sys.modules`` instead.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    return "pytest" in sys.modules


explicit_test_db = os.getenv("GRAMMARHUB_TEST_DB")

if explicit_test_db:
    DATABASE_URL = explicit_test_db
elif _is_pytest_runtime():
    DATABASE_URL = "sqlite+pysqlite:///:memory:"
else:
    DATABASE_URL = _get_database_url()


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        # In-memory SQLite with StaticPool so the schema persists across connections
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_SCHEMA_INIT_DONE = False


def ensure_sqlite_schema() -> None:
    """Create tables on SQLite databases that were never migrated.

    Other databases are managed by Alembic; local SQLite files and the
    in-memory test database are created on first use.
    """
    global _SCHEMA_INIT_DONE
    if _SCHEMA_INIT_DONE:
        return
    if str(engine.url).startswith("sqlite"):
        from grammarhub.db import models  # local import to avoid circular import at module load

        models.Base.metadata.create_all(bind=engine)
    _SCHEMA_INIT_DONE = True


def get_db():
    """Dependency to get a database session."""
    ensure_sqlite_schema()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
