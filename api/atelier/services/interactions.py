"""
Post interactions: likes and bookmarks.

Both are per-user toggles backed by a row with a unique (post_id, user_id)
constraint. The constraint is the only guard against two concurrent
toggle-ons; losing that race is reported as "already on".
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


def _get_post_or_404(db: Session, post_id: str) -> models.Post:
    post = db.get(models.Post, post_id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return post


def _toggle(db: Session, model, actor: models.User, post_id: str) -> bool:
    existing = (
        db.query(model)
        .filter(model.post_id == post_id, model.user_id == actor.id)
        .first()
    )
    if existing:
        db.delete(existing)
        db.commit()
        return False

    db.add(model(post_id=post_id, user_id=actor.id))
    try:
        db.commit()
    except IntegrityError:
        # Lost the race to a concurrent toggle-on; the row exists either way
        db.rollback()
        return True
    return True


def toggle_like(db: Session, actor: models.User, post_id: str) -> bool:
    """
    Flip actor's like on a post.

    Liking notifies the post author, except when actor is the author.
    Unliking never notifies.

    Returns:
        True if the post is now liked, False if it is now unliked

    Raises:
        HTTPException 404 if the post doesn't exist
    """
    require_feature(db, Feature.LIKES)
    post = _get_post_or_404(db, post_id)
    author_id = post.author_id

    liked = _toggle(db, models.Like, actor, post_id)
    logger.info(f"User {actor.id} {'liked' if liked else 'unliked'} post {post_id}")

    if liked:
        NotificationService.create_notification(
            db,
            notification_type="like",
            recipient_id=author_id,
            sender_id=actor.id,
            post_id=post_id,
        )

    return liked


def like_counts(db: Session, post_ids: list[str]) -> dict[str, int]:
    """Number of likes per post, for posts with at least one."""
    if not post_ids or not is_available(db, Feature.LIKES):
        return {}

    rows = (
        db.query(models.Like.post_id, func.count(models.Like.id))
        .filter(models.Like.post_id.in_(post_ids))
        .group_by(models.Like.post_id)
        .all()
    )
    return {post_id: count for post_id, count in rows}


def like_status(db: Session, viewer: models.User | None, post_id: str) -> tuple[bool, int]:
    """
    Returns:
        (is_liked, count). is_liked is False for anonymous viewers.
    """
    count = like_counts(db, [post_id]).get(post_id, 0)
    if viewer is None or not is_available(db, Feature.LIKES):
        return False, count

    liked = (
        db.query(models.Like.id)
        .filter(models.Like.post_id == post_id, models.Like.user_id == viewer.id)
        .first()
        is not None
    )
    return liked, count


def toggle_bookmark(db: Session, actor: models.User, post_id: str) -> bool:
    """Flip actor's bookmark on a post. Returns the new state."""
    require_feature(db, Feature.BOOKMARKS)
    _get_post_or_404(db, post_id)

    return _toggle(db, models.Bookmark, actor, post_id)


def bookmark_status(db: Session, viewer: models.User | None, post_id: str) -> bool:
    if viewer is None or not is_available(db, Feature.BOOKMARKS):
        return False

    return (
        db.query(models.Bookmark.id)
        .filter(models.Bookmark.post_id == post_id, models.Bookmark.user_id == viewer.id)
        .first()
        is not None
    )


def annotate_posts(
    db: Session, posts: list[models.Post], viewer_id: str | None = None
) -> list[models.Post]:
    """
    Add like_count, comment_count, liked_by_me and bookmarked_by_me to posts.

    Counts are fetched with one GROUP BY query each and attached to the ORM
    objects, so callers can serialize them straight into `schemas.Post`.

    Args:
        db: Database session
        posts: Post ORM objects to annotate
        viewer_id: Current user's ID, if any (for liked_by_me/bookmarked_by_me)

    Returns:
        The same list, annotated
    """
    if not posts:
        return posts

    post_ids = [post.id for post in posts]
    likes = like_counts(db, post_ids)

    comments: dict[str, int] = {}
    if is_available(db, Feature.COMMENTS):
        comments = dict(
            db.query(models.Comment.post_id, func.count(models.Comment.id))
            .filter(models.Comment.post_id.in_(post_ids))
            .group_by(models.Comment.post_id)
            .all()
        )

    liked: set[str] = set()
    bookmarked: set[str] = set()
    if viewer_id:
        if is_available(db, Feature.LIKES):
            liked = {
                row.post_id
                for row in db.query(models.Like.post_id).filter(
                    models.Like.post_id.in_(post_ids), models.Like.user_id == viewer_id
                )
            }
        if is_available(db, Feature.BOOKMARKS):
            bookmarked = {
                row.post_id
                for row in db.query(models.Bookmark.post_id).filter(
                    models.Bookmark.post_id.in_(post_ids),
                    models.Bookmark.user_id == viewer_id,
                )
            }

    for post in posts:
        post.like_count = likes.get(post.id, 0)
        post.comment_count = comments.get(post.id, 0)
        post.liked_by_me = post.id in liked
        post.bookmarked_by_me = post.id in bookmarked

    return posts
