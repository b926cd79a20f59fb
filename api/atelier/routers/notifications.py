"""Notification endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas, settings
from ..auth import get_current_user
from ..db import as_utc
from ..deps import get_db
from ..services.notifications import NotificationService, describe, group_by_recency

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _serialize(notification: models.Notification) -> schemas.Notification:
    item = schemas.Notification.model_validate(notification)
    item.message = describe(notification)
    return item


def _parse_cursor(cursor: str | None) -> datetime | None:
    if not cursor:
        return None
    try:
        parsed = datetime.fromisoformat(cursor.replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid cursor format. Expected ISO timestamp.",
        )
    return as_utc(parsed)


@router.get("", response_model=schemas.Page[schemas.Notification])
def list_notifications(
    limit: int = Query(settings.NOTIFICATION_LIMIT, ge=1, le=200),
    cursor: str | None = Query(None, description="ISO timestamp cursor for pagination"),
    unread_only: bool = Query(False, description="Only return unread notifications"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Page[schemas.Notification]:
    """
    List notifications for the current user.

    Returns notifications in reverse chronological order with cursor-based pagination.
    """
    notifications, next_cursor = NotificationService.list_notifications(
        db=db,
        recipient_id=current_user.id,
        limit=limit,
        cursor=_parse_cursor(cursor),
        unread_only=unread_only,
    )

    return schemas.Page(
        items=[_serialize(n) for n in notifications],
        next_cursor=as_utc(next_cursor).isoformat() if next_cursor else None,
    )


@router.get("/grouped", response_model=list[schemas.NotificationGroup])
def list_grouped_notifications(
    limit: int = Query(settings.NOTIFICATION_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.NotificationGroup]:
    """Latest notifications bucketed into Today, Yesterday, This Week and Older."""
    notifications, _ = NotificationService.list_notifications(
        db=db, recipient_id=current_user.id, limit=limit
    )

    return [
        schemas.NotificationGroup(label=label, items=[_serialize(n) for n in items])
        for label, items in group_by_recency(notifications)
    ]


@router.get("/unread-count", response_model=schemas.UnreadCount)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.UnreadCount:
    """Get unread notification count for the current user."""
    count = NotificationService.get_unread_count(db, current_user.id)
    return schemas.UnreadCount(unread_count=count)


@router.post("/mark-all-read", response_model=schemas.MarkAllReadResponse)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MarkAllReadResponse:
    """Mark all notifications as read for the current user."""
    updated = NotificationService.mark_all_as_read(db, current_user.id)
    return schemas.MarkAllReadResponse(updated=updated)


@router.post("/{id}/read", response_model=schemas.SuccessResponse)
def mark_notification_read(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.SuccessResponse:
    """Mark one notification as read. Recipient only."""
    NotificationService.mark_as_read(db, id, current_user)
    return schemas.SuccessResponse()
