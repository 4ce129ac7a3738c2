"""Client configuration sourced from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from grammarhub.utils.settings import data_dir_from_env

DEFAULT_STORAGE_DIR = Path.home() / ".grammarhub"
LOCAL_STORAGE_FILENAME = "local_storage.json"


@dataclass
class ClientConfig:
    backend_url: Optional[str] = None
    storage_dir: Path = DEFAULT_STORAGE_DIR
    data_dir: Path = field(default_factory=data_dir_from_env)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        backend = (os.getenv("GRAMMARHUB_BACKEND_URL") or "").strip().rstrip("/")
        storage = os.getenv("GRAMMARHUB_STORAGE_DIR")
        return cls(
            backend_url=backend or None,
            storage_dir=Path(storage).expanduser() if storage else DEFAULT_STORAGE_DIR,
            data_dir=data_dir_from_env(),
        )

    @property
    def local_storage_path(self) -> Path:
        return self.storage_dir / LOCAL_STORAGE_FILENAME
