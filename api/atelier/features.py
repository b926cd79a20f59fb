"""
Feature capability flags.

A feature is provisioned when every table it needs exists in the database and
it has not been switched off through ATELIER_DISABLED_FEATURES. Reads on an
unprovisioned feature return empty results; writes fail with 503.
"""

from __future__ import annotations

import logging
from enum import Enum

from fastapi import HTTPException, status
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from . import settings

logger = logging.getLogger(__name__)


class Feature(str, Enum):
    FOLLOWS = "follows"
    NOTIFICATIONS = "notifications"
    MESSAGING = "messaging"
    COMMENTS = "comments"
    LIKES = "likes"
    BOOKMARKS = "bookmarks"
    EVENTS = "events"
    MOOD_BOARDS = "mood_boards"
    SERVICES = "services"
    PORTFOLIO = "portfolio"


FEATURE_TABLES: dict[Feature, tuple[str, ...]] = {
    Feature.FOLLOWS: ("follows",),
    Feature.NOTIFICATIONS: ("notifications",),
    Feature.MESSAGING: ("conversations", "messages"),
    Feature.COMMENTS: ("comments",),
    Feature.LIKES: ("likes",),
    Feature.BOOKMARKS: ("bookmarks",),
    Feature.EVENTS: ("events",),
    Feature.MOOD_BOARDS: ("mood_boards", "mood_board_items"),
    Feature.SERVICES: ("services",),
    Feature.PORTFOLIO: ("portfolio_items",),
}

FEATURE_LABELS: dict[Feature, str] = {
    Feature.FOLLOWS: "Following",
    Feature.NOTIFICATIONS: "Notifications",
    Feature.MESSAGING: "Messaging",
    Feature.COMMENTS: "Comments",
    Feature.LIKES: "Likes",
    Feature.BOOKMARKS: "Bookmarks",
    Feature.EVENTS: "Events",
    Feature.MOOD_BOARDS: "Mood boards",
    Feature.SERVICES: "Services",
    Feature.PORTFOLIO: "Portfolio",
}


def _parse_disabled(names: list[str]) -> set[Feature]:
    disabled: set[Feature] = set()
    for name in names:
        try:
            disabled.add(Feature(name))
        except ValueError:
            logger.warning(f"Ignoring unknown feature in ATELIER_DISABLED_FEATURES: {name}")
    return disabled


class FeatureRegistry:
    """Tracks which features the connected database can serve."""

    def __init__(self, disabled: set[Feature] | None = None) -> None:
        self._disabled: set[Feature] = set(disabled or ())
        self._tables: set[str] | None = None

    def probe(self, bind) -> None:
        """Record the tables present on `bind` (an Engine or Connection)."""
        self._tables = set(inspect(bind).get_table_names())
        missing = [f.value for f in Feature if not self._has_tables(f)]
        if missing:
            logger.warning(f"Features not provisioned: {', '.join(missing)}")
        else:
            logger.info("All features provisioned")

    def reset(self) -> None:
        """Forget the last probe; the next check probes again."""
        self._tables = None

    def disable(self, feature: Feature) -> None:
        self._disabled.add(feature)

    def enable(self, feature: Feature) -> None:
        self._disabled.discard(feature)

    def _has_tables(self, feature: Feature) -> bool:
        if self._tables is None:
            return False
        return all(table in self._tables for table in FEATURE_TABLES[feature])

    def is_available(self, db: Session, feature: Feature) -> bool:
        if feature in self._disabled:
            return False
        if self._tables is None:
            self.probe(db.get_bind())
        return self._has_tables(feature)

    def snapshot(self, db: Session) -> dict[str, bool]:
        return {feature.value: self.is_available(db, feature) for feature in Feature}


registry = FeatureRegistry(_parse_disabled(settings.DISABLED_FEATURES))


def is_available(db: Session, feature: Feature) -> bool:
    """True when reads and writes for `feature` can be served."""
    return registry.is_available(db, feature)


def require_feature(db: Session, feature: Feature) -> None:
    """
    Require that a feature is provisioned before writing to it.

    Raises 503 Service Unavailable if the feature's tables are missing or it
    has been switched off.
    """
    if not registry.is_available(db, feature):
        label = FEATURE_LABELS[feature]
        logger.warning(f"Rejected write: feature '{feature.value}' is not provisioned")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} is not available yet. Please run the database migrations.",
        )
