"""
Social graph service.

Directed follow edges between users, follow-status lookups, and the
follower/following counts shown on people cards and profiles.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..features import Feature, is_available, require_feature
from .notifications import NotificationService

logger = logging.getLogger(__name__)


def follow(db: Session, actor: models.User, target_id: str) -> bool:
    """
    Follow a user.

    Idempotent: following someone already followed is a success that creates
    nothing. The first follow notifies the target with a 'connect'
    notification.

    Returns:
        True if a new edge was created, False if it already existed

    Raises:
        HTTPException 400 on self-follow, 404 if the target doesn't exist
    """
    if actor.id == target_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot follow yourself",
        )

    require_feature(db, Feature.FOLLOWS)

    if not db.get(models.User, target_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    existing = (
        db.query(models.Follow)
        .filter(
            models.Follow.follower_id == actor.id,
            models.Follow.following_id == target_id,
        )
        .first()
    )
    if existing:
        return False

    db.add(models.Follow(follower_id=actor.id, following_id=target_id))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request created the same edge
        db.rollback()
        return False

    logger.info(f"User {actor.id} followed {target_id}")

    NotificationService.create_notification(
        db,
        notification_type="connect",
        recipient_id=target_id,
        sender_id=actor.id,
    )
    return True


def unfollow(db: Session, actor: models.User, target_id: str) -> None:
    """Remove the edge actor -> target if there is one."""
    require_feature(db, Feature.FOLLOWS)

    db.query(models.Follow).filter(
        models.Follow.follower_id == actor.id,
        models.Follow.following_id == target_id,
    ).delete(synchronize_session=False)
    db.commit()


def is_following(db: Session, actor: models.User | None, target_id: str) -> bool:
    if actor is None or not is_available(db, Feature.FOLLOWS):
        return False

    return (
        db.query(models.Follow.id)
        .filter(
            models.Follow.follower_id == actor.id,
            models.Follow.following_id == target_id,
        )
        .first()
        is not None
    )


def follow_statuses(
    db: Session, actor: models.User | None, target_ids: list[str]
) -> dict[str, bool]:
    """
    Batch follow-status check.

    Returns an empty map for anonymous viewers, an empty id list, or when
    follows are not provisioned. Otherwise every requested id is present,
    True only where actor follows it.
    """
    if actor is None or not target_ids:
        return {}
    if not is_available(db, Feature.FOLLOWS):
        return {}

    followed = {
        row.following_id
        for row in db.query(models.Follow.following_id).filter(
            models.Follow.follower_id == actor.id,
            models.Follow.following_id.in_(target_ids),
        )
    }

    return {target_id: target_id in followed for target_id in target_ids}


def follower_counts(db: Session, user_ids: list[str]) -> dict[str, int]:
    """Number of followers per user, for users with at least one."""
    if not user_ids or not is_available(db, Feature.FOLLOWS):
        return {}

    rows = (
        db.query(models.Follow.following_id, func.count(models.Follow.id))
        .filter(models.Follow.following_id.in_(user_ids))
        .group_by(models.Follow.following_id)
        .all()
    )
    return {user_id: count for user_id, count in rows}


def following_counts(db: Session, user_ids: list[str]) -> dict[str, int]:
    """Number of users each user follows, for users following at least one."""
    if not user_ids or not is_available(db, Feature.FOLLOWS):
        return {}

    rows = (
        db.query(models.Follow.follower_id, func.count(models.Follow.id))
        .filter(models.Follow.follower_id.in_(user_ids))
        .group_by(models.Follow.follower_id)
        .all()
    )
    return {user_id: count for user_id, count in rows}


def post_counts(db: Session, user_ids: list[str]) -> dict[str, int]:
    if not user_ids:
        return {}

    rows = (
        db.query(models.Post.author_id, func.count(models.Post.id))
        .filter(models.Post.author_id.in_(user_ids))
        .group_by(models.Post.author_id)
        .all()
    )
    return {user_id: count for user_id, count in rows}


def list_people(
    db: Session, viewer: models.User | None, limit: int = 50
) -> list[models.User]:
    """
    Users other than the viewer, newest first.

    Each returned user carries post_count, follower_count and following_count
    attributes for the people cards.
    """
    query = db.query(models.User)
    if viewer is not None:
        query = query.filter(models.User.id != viewer.id)

    users = query.order_by(models.User.created_at.desc()).limit(limit).all()

    user_ids = [user.id for user in users]
    posts = post_counts(db, user_ids)
    followers = follower_counts(db, user_ids)
    following = following_counts(db, user_ids)

    for user in users:
        user.post_count = posts.get(user.id, 0)
        user.follower_count = followers.get(user.id, 0)
        user.following_count = following.get(user.id, 0)

    return users
