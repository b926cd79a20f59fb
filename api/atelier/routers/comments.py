"""Comment management endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from ..auth import get_current_user, require_ownership
from ..deps import get_db
from ..features import Feature, is_available, require_feature
from ..services.notifications import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Comments"])


@router.get("/post/{id}/comments", response_model=list[schemas.Comment])
def list_comments(
    id: str,
    db: Session = Depends(get_db),
) -> list[schemas.Comment]:
    """Comments on a post, oldest first, with their authors."""
    if not is_available(db, Feature.COMMENTS):
        return []

    comments = (
        db.query(models.Comment)
        .options(joinedload(models.Comment.user))
        .filter(models.Comment.post_id == id)
        .order_by(models.Comment.created_at.asc())
        .all()
    )
    return [schemas.Comment.model_validate(c) for c in comments]


@router.post(
    "/post/{id}/comments",
    response_model=schemas.Comment,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    id: str,
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    """
    Comment on a post.

    The post author is notified unless they are commenting on their own post.
    """
    require_feature(db, Feature.COMMENTS)

    post = db.get(models.Post, id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )

    comment = models.Comment(post_id=post.id, user_id=current_user.id, content=payload.content)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    NotificationService.create_notification(
        db,
        notification_type="comment",
        recipient_id=post.author_id,
        sender_id=current_user.id,
        post_id=post.id,
    )

    return schemas.Comment.model_validate(comment)


@router.delete("/comments/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    """Delete a comment. Comment author only."""
    require_feature(db, Feature.COMMENTS)

    comment = db.get(models.Comment, id)
    if not comment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found",
        )
    require_ownership(comment.user_id, current_user)

    db.delete(comment)
    db.commit()

    logger.info(f"User {current_user.id} deleted comment {id}")
