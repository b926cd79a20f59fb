"""
Notification Service.

Handles creation, retrieval, and read-state of notifications for likes,
comments and follows (connect), plus display helpers for the notification page.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from .. import models
from ..db import as_utc, utcnow
from ..features import Feature, is_available, require_feature

logger = logging.getLogger(__name__)

RECENCY_GROUPS = ("Today", "Yesterday", "This Week", "Older")


class NotificationService:
    """Service for managing notifications."""

    @staticmethod
    def create_notification(
        db: Session,
        notification_type: str,
        recipient_id: str,
        sender_id: str | None = None,
        post_id: str | None = None,
        metadata: str | None = None,
    ) -> models.Notification | None:
        """
        Create a notification.

        Called synchronously by the mutation that caused it, after that
        mutation has committed. Delivery is best-effort: nothing is retried
        and the triggering action is not rolled back.

        Args:
            db: Database session
            notification_type: 'like', 'comment', 'connect' or 'insight'
            recipient_id: ID of the user to notify
            sender_id: ID of the user who performed the action
            post_id: Post the notification refers to
            metadata: Opaque payload (insight notifications)

        Returns:
            Created notification, or None if skipped (self-action or feature
            not provisioned)
        """
        # Don't notify users about their own actions
        if sender_id and sender_id == recipient_id:
            logger.debug(f"Skipping self-notification for user {recipient_id}")
            return None

        if not is_available(db, Feature.NOTIFICATIONS):
            logger.warning("Notifications not provisioned, dropping notification")
            return None

        notification = models.Notification(
            type=notification_type,
            recipient_id=recipient_id,
            sender_id=sender_id,
            post_id=post_id,
            meta=metadata,
        )

        db.add(notification)
        db.commit()
        db.refresh(notification)

        logger.info(
            f"Created {notification_type} notification {notification.id} for user {recipient_id}"
        )

        return notification

    @staticmethod
    def get_unread_count(db: Session, recipient_id: str) -> int:
        """Get unread notification count for a user."""
        if not is_available(db, Feature.NOTIFICATIONS):
            return 0

        return (
            db.query(func.count(models.Notification.id))
            .filter(
                models.Notification.recipient_id == recipient_id,
                models.Notification.read == False,
            )
            .scalar()
            or 0
        )

    @staticmethod
    def list_notifications(
        db: Session,
        recipient_id: str,
        limit: int = 50,
        cursor: datetime | None = None,
        unread_only: bool = False,
    ) -> tuple[list[models.Notification], datetime | None]:
        """
        List notifications for a user with cursor-based pagination.

        Args:
            db: Database session
            recipient_id: User ID
            limit: Maximum number of notifications to return
            cursor: Timestamp cursor for pagination (exclusive)
            unread_only: If True, only return unread notifications

        Returns:
            Tuple of (notifications, next_cursor), newest first
        """
        if not is_available(db, Feature.NOTIFICATIONS):
            return [], None

        query = (
            db.query(models.Notification)
            .options(
                joinedload(models.Notification.sender),
                joinedload(models.Notification.recipient),
            )
            .filter(models.Notification.recipient_id == recipient_id)
        )

        if unread_only:
            query = query.filter(models.Notification.read == False)

        if cursor:
            query = query.filter(models.Notification.created_at < cursor)

        # Order by created_at descending (newest first)
        query = query.order_by(models.Notification.created_at.desc(), models.Notification.id.desc())

        # Fetch limit + 1 to determine if there are more results
        notifications = query.limit(limit + 1).all()

        has_more = len(notifications) > limit
        items = notifications[:limit]

        next_cursor = None
        if has_more and items:
            next_cursor = items[-1].created_at

        return items, next_cursor

    @staticmethod
    def mark_as_read(db: Session, notification_id: str, recipient: models.User) -> None:
        """
        Mark one notification as read.

        Raises:
            HTTPException 404 if the notification doesn't exist,
            403 if it belongs to someone else
        """
        require_feature(db, Feature.NOTIFICATIONS)

        notification = db.get(models.Notification, notification_id)
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found",
            )
        if notification.recipient_id != recipient.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You don't have permission to access this notification",
            )

        if not notification.read:
            notification.read = True
            db.commit()

    @staticmethod
    def mark_all_as_read(db: Session, recipient_id: str) -> int:
        """
        Mark all notifications as read for a user.

        Returns:
            Number of notifications updated
        """
        require_feature(db, Feature.NOTIFICATIONS)

        count = (
            db.query(models.Notification)
            .filter(
                models.Notification.recipient_id == recipient_id,
                models.Notification.read == False,
            )
            .update({"read": True}, synchronize_session=False)
        )

        db.commit()

        return count


def describe(notification: models.Notification) -> str:
    """Human readable message for a notification."""
    sender = notification.sender
    sender_name = (sender.name if sender else None) or "Someone"

    if notification.type == "like":
        return f"{sender_name} liked your post"
    if notification.type == "comment":
        return f"{sender_name} commented on your post"
    if notification.type == "connect":
        return f"{sender_name} wants to keep in touch"
    if notification.type == "insight":
        return _describe_insight(notification.meta)
    return "New notification"


def _describe_insight(metadata: str | None) -> str:
    # Nothing in this codebase produces insights; read the payload best-effort.
    try:
        payload = json.loads(metadata) if metadata else None
    except ValueError:
        payload = None
    count = payload.get("count") if isinstance(payload, dict) else None
    if isinstance(count, int) and not isinstance(count, bool):
        return f"Your post got {count} impressions"
    return "You have a new insight"


def recency_label(created_at: datetime, now: datetime) -> str:
    """Calendar relation of `created_at` to `now`: Today, Yesterday, This Week or Older."""
    created_at = as_utc(created_at)
    now = as_utc(now)

    if created_at.date() == now.date():
        return "Today"
    if created_at.date() == (now - timedelta(days=1)).date():
        return "Yesterday"
    if created_at > now - timedelta(days=7):
        return "This Week"
    return "Older"


def group_by_recency(
    notifications: list[models.Notification], now: datetime | None = None
) -> list[tuple[str, list[models.Notification]]]:
    """
    Group notifications for display.

    Computed at call time against `now`; the grouping is never stored.
    Empty groups are omitted and each group keeps the input order.
    """
    now = now or utcnow()
    groups: dict[str, list[models.Notification]] = {label: [] for label in RECENCY_GROUPS}
    for notification in notifications:
        groups[recency_label(notification.created_at, now)].append(notification)
    return [(label, groups[label]) for label in RECENCY_GROUPS if groups[label]]
