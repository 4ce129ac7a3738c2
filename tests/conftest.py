import os

os.environ.setdefault("PYTEST_RUNNING", "1")

import pytest
from fastapi.testclient import TestClient

from grammarhub.db import database, models
from grammarhub.services.cache import reset_script_cache_for_tests
from grammarhub.utils.feature_flags import refresh_feature_flag_cache

_ENV_VARS = (
    "ADMIN_API_KEY",
    "ADMIN_EMAILS",
    "CORS_ORIGINS",
    "PROGRESS_CACHE_TTL_SECONDS",
    "FEATURE_SELF_REGISTRATION_ENABLED",
    "FEATURE_PROGRESS_CACHE_ENABLED",
    "GRAMMARHUB_BACKEND_URL",
    "GRAMMARHUB_STORAGE_DIR",
    "GRAMMARHUB_DATA_DIR",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Start every test from default configuration."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    refresh_feature_flag_cache()
    reset_script_cache_for_tests()
    yield
    refresh_feature_flag_cache()
    reset_script_cache_for_tests()


@pytest.fixture(autouse=True)
def _fresh_schema():
    """Recreate every sheet table so tests never see each other's rows."""
    models.Base.metadata.drop_all(bind=database.engine)
    models.Base.metadata.create_all(bind=database.engine)
    yield


@pytest.fixture
def db_session():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from grammarhub.api.main import app

    with TestClient(app) as test_client:
        yield test_client
