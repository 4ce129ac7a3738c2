"""Service configuration sourced from the environment."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_DATA_DIR = ROOT_DIR / "data"

DEFAULT_CORS_ORIGINS = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:5500",
    "http://localhost:8000",
]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %s", name, raw, default)
        return default


def normalize_list_env(var_name: str) -> Set[str]:
    raw = os.getenv(var_name, "")
    values = set()
    for entry in raw.split(","):
        cleaned = entry.strip().strip('"').strip("'")
        if cleaned:
            values.add(cleaned.lower())
    return values


def data_dir_from_env() -> Path:
    raw = os.getenv("GRAMMARHUB_DATA_DIR")
    return Path(raw) if raw else DEFAULT_DATA_DIR


@dataclass
class ServiceSettings:
    progress_cache_ttl_seconds: int = 90
    admin_api_key: Optional[str] = None
    admin_emails: Set[str] = field(default_factory=set)
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    data_dir: Path = DEFAULT_DATA_DIR

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        origins_raw = os.getenv("CORS_ORIGINS", "")
        origins = [o.strip() for o in origins_raw.split(",") if o.strip()] or list(DEFAULT_CORS_ORIGINS)
        return cls(
            progress_cache_ttl_seconds=_int_env("PROGRESS_CACHE_TTL_SECONDS", 90),
            admin_api_key=os.getenv("ADMIN_API_KEY") or None,
            admin_emails=normalize_list_env("ADMIN_EMAILS"),
            cors_origins=origins,
            data_dir=data_dir_from_env(),
        )


def get_settings() -> ServiceSettings:
    """Read settings on every call so tests can monkeypatch the environment."""
    return ServiceSettings.from_env()
