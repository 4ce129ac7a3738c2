"""
Service status and build information endpoints.
"""
from __future__ import annotations

import os
from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(tags=["support"])

SERVICE_NAME = "grammarhub-service"


@router.get("/")
def service_status():
    """Liveness payload."""
    return {
        "status": "ok",
        "message": "GrammarHub Backend Active",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


@router.get("/build-info")
def get_build_info():
    """Return build and deployment information for the running service."""
    build_sha = os.getenv("BUILD_SHA")
    build_timestamp = os.getenv("BUILD_TIMESTAMP")
    version = os.getenv("VERSION", "unknown")

    return {
        "build_sha": build_sha if build_sha else None,
        "build_timestamp": build_timestamp if build_timestamp else None,
        "service_name": SERVICE_NAME,
        "version": version,
    }
