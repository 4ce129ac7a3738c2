"""
App assembly entry point.

Re-exports the FastAPI `app` from `grammarhub.api.main` so the service can be
started with `uvicorn app:app`.
"""

from grammarhub.api.main import app  # noqa: F401
