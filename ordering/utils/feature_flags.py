"""Feature flag helpers for runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "push_notifications_enabled",
    "loyalty_points_enabled",
    "promotions_enabled",
]


class FeatureFlagValues(TypedDict):
    push_notifications_enabled: bool
    loyalty_points_enabled: bool
    promotions_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "push_notifications_enabled": FeatureFlagDefinition("PUSH_NOTIFICATIONS_ENABLED", True),
    "loyalty_points_enabled": FeatureFlagDefinition("LOYALTY_POINTS_ENABLED", True),
    "promotions_enabled": FeatureFlagDefinition("PROMOTIONS_ENABLED", True),
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
    """Return whether the supplied feature flag evaluates to true."""
    return get_feature_flags()[flag]


def push_notifications_enabled() -> bool:
    """Global toggle for FCM delivery."""
    return is_feature_enabled("push_notifications_enabled")


def loyalty_points_enabled() -> bool:
    """Toggle crediting of loyalty points on completed orders."""
    return is_feature_enabled("loyalty_points_enabled")


def promotions_enabled() -> bool:
    """Toggle automatic promotion discounts in cart summaries."""
    return is_feature_enabled("promotions_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
