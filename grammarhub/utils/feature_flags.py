"""Feature flag helpers for runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "self_registration_enabled",
    "progress_cache_enabled",
]


class FeatureFlagValues(TypedDict):
    self_registration_enabled: bool
    progress_cache_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "self_registration_enabled": FeatureFlagDefinition("FEATURE_SELF_REGISTRATION_ENABLED", True),
    "progress_cache_enabled": FeatureFlagDefinition("FEATURE_PROGRESS_CACHE_ENABLED", True),
}


def _normalize_bool(value: str | None, default: bool = True) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> FeatureFlagValues:
    """Return the cached feature flag state sourced from the environment."""
    values: Dict[FeatureFlagKey, bool] = {}
    for key, definition in _FEATURE_FLAG_DEFINITIONS.items():
        values[key] = _normalize_bool(os.getenv(definition.env_var), default=definition.default)
    return cast(FeatureFlagValues, values)


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    return get_feature_flags()[flag]


def self_registration_enabled() -> bool:
    """Students may create their own (pending) accounts."""
    return is_feature_enabled("self_registration_enabled")


def progress_cache_enabled() -> bool:
    """Dashboard and profile reads are served from the TTL cache."""
    return is_feature_enabled("progress_cache_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
