"""Centralized environment-driven settings.

Keep this module lightweight: stdlib only, no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _list_env(name: str) -> list[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


# Startup behaviour
RUN_MIGRATIONS: bool = _bool_env("RUN_MIGRATIONS", True)
SEED_DEMO_DATA: bool = _bool_env("SEED_DEMO_DATA", False)

# Features that must be treated as not provisioned even if their tables exist.
# e.g. ATELIER_DISABLED_FEATURES=messaging,mood_boards
DISABLED_FEATURES: list[str] = _list_env("ATELIER_DISABLED_FEATURES")

# List sizes
FEED_LIMIT: int = _int_env("ATELIER_FEED_LIMIT", 100)
PROFILE_POSTS_LIMIT: int = _int_env("ATELIER_PROFILE_POSTS_LIMIT", 50)
LIST_LIMIT: int = _int_env("ATELIER_LIST_LIMIT", 50)
NOTIFICATION_LIMIT: int = _int_env("ATELIER_NOTIFICATION_LIMIT", 50)

# Inline (data URL) portfolio images larger than this are rejected.
PORTFOLIO_IMAGE_MAX_BYTES: int = _int_env("ATELIER_PORTFOLIO_IMAGE_MAX_BYTES", 300 * 1024)

# Global maximum size for a single image upload (bytes), enforced by the upload
# collaborator and published to clients via /config.
# Configured via .env: ATELIER_IMAGE_SIZE_LIMIT=5242880  (5 MiB)
IMAGE_SIZE_LIMIT_BYTES: int = _int_env("ATELIER_IMAGE_SIZE_LIMIT", 5 * 1024 * 1024)
