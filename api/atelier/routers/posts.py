"""Post management endpoints, including likes and bookmarks."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas, settings
from ..auth import get_current_user, get_current_user_optional, require_ownership
from ..deps import get_db
from ..features import Feature, is_available
from ..services import interactions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/post", tags=["Posts"])


def _get_post_or_404(db: Session, post_id: str) -> models.Post:
    post = (
        db.query(models.Post)
        .options(joinedload(models.Post.author))
        .filter(models.Post.id == post_id)
        .first()
    )
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return post


def _viewer_id(user: models.User | None) -> str | None:
    return user.id if user else None


@router.get("", response_model=list[schemas.Post])
def list_posts(
    limit: int = Query(settings.FEED_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> list[schemas.Post]:
    """
    Feed: all posts, newest first, with author and interaction counts.
    """
    posts = (
        db.query(models.Post)
        .options(joinedload(models.Post.author))
        .order_by(models.Post.created_at.desc())
        .limit(limit)
        .all()
    )
    interactions.annotate_posts(db, posts, _viewer_id(current_user))

    return [schemas.Post.model_validate(p) for p in posts]


@router.post("", response_model=schemas.Post, status_code=status.HTTP_201_CREATED)
def create_post(
    payload: schemas.PostCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    """Create a post. The author is always the current user."""
    post = models.Post(
        author_id=current_user.id,
        content=payload.content,
        image_url=payload.image_url,
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    logger.info(f"User {current_user.id} created post {post.id}")

    interactions.annotate_posts(db, [post], current_user.id)
    return schemas.Post.model_validate(post)


@router.get("/{id}", response_model=schemas.Post)
def get_post(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Post:
    post = _get_post_or_404(db, id)
    interactions.annotate_posts(db, [post], _viewer_id(current_user))
    return schemas.Post.model_validate(post)


@router.patch("/{id}", response_model=schemas.Post)
def update_post(
    id: str,
    payload: schemas.PostUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    """Replace a post's content and image. Author only."""
    post = _get_post_or_404(db, id)
    require_ownership(post.author_id, current_user)

    post.content = payload.content
    post.image_url = payload.image_url
    db.commit()
    db.refresh(post)

    interactions.annotate_posts(db, [post], current_user.id)
    return schemas.Post.model_validate(post)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    """
    Delete a post permanently. Author only.

    Likes, bookmarks and comments on the post go with it.
    """
    post = _get_post_or_404(db, id)
    require_ownership(post.author_id, current_user)

    db.delete(post)
    db.commit()

    logger.info(f"User {current_user.id} deleted post {id}")


# ============================================================================
# LIKES & BOOKMARKS
# ============================================================================


@router.post("/{id}/like", response_model=schemas.ToggleResponse)
def toggle_like(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.ToggleResponse:
    """Like the post, or remove the like if already liked."""
    return schemas.ToggleResponse(active=interactions.toggle_like(db, current_user, id))


@router.get("/{id}/like", response_model=schemas.LikeStatus)
def get_like_status(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.LikeStatus:
    is_liked, count = interactions.like_status(db, current_user, id)
    return schemas.LikeStatus(is_liked=is_liked, count=count)


@router.post("/{id}/bookmark", response_model=schemas.ToggleResponse)
def toggle_bookmark(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.ToggleResponse:
    """Bookmark the post, or remove the bookmark if already bookmarked."""
    return schemas.ToggleResponse(active=interactions.toggle_bookmark(db, current_user, id))


@router.get("/{id}/bookmark", response_model=schemas.BookmarkStatus)
def get_bookmark_status(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.BookmarkStatus:
    return schemas.BookmarkStatus(
        is_bookmarked=interactions.bookmark_status(db, current_user, id)
    )


@router.get("/{id}/saved", response_model=schemas.SavedStatus)
def get_saved_status(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.SavedStatus:
    """Whether the post is pinned to any of the current user's mood boards."""
    if current_user is None or not is_available(db, Feature.MOOD_BOARDS):
        return schemas.SavedStatus(is_saved=False)

    board_ids = [
        row.mood_board_id
        for row in db.query(models.MoodBoardItem.mood_board_id)
        .join(models.MoodBoard, models.MoodBoardItem.mood_board_id == models.MoodBoard.id)
        .filter(
            models.MoodBoardItem.post_id == id,
            models.MoodBoard.owner_id == current_user.id,
        )
        .distinct()
    ]
    return schemas.SavedStatus(is_saved=bool(board_ids), mood_board_ids=board_ids)
