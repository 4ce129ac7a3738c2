"""Wires storage, API client, progress store and session guard together."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from grammarhub.client.api import ApiClient
from grammarhub.client.config import ClientConfig
from grammarhub.client.progress import ProgressStore
from grammarhub.client.session import SessionGuard
from grammarhub.client.storage import LocalStorage, SessionStorage


@dataclass
class ClientContext:
    config: ClientConfig
    local: SessionStorage
    session: SessionStorage
    api: ApiClient
    progress: ProgressStore
    guard: SessionGuard

    @classmethod
    def build(
        cls,
        config: Optional[ClientConfig] = None,
        http: Any = None,
        local: Optional[SessionStorage] = None,
        max_workers: int = 2,
    ) -> "ClientContext":
        config = config or ClientConfig.from_env()
        local = local if local is not None else LocalStorage(config.local_storage_path)
        session = SessionStorage()
        api = ApiClient(config, local, session=http)
        progress = ProgressStore(local, session, api=api, max_workers=max_workers)
        api.on_result_synced = progress.invalidate_cache
        guard = SessionGuard(local, session, api, progress)
        return cls(config=config, local=local, session=session, api=api, progress=progress, guard=guard)
