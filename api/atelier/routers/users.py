"""User directory and follow endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas, settings
from ..auth import get_current_user, get_current_user_optional
from ..deps import get_db
from ..services import social_graph
from ..services.interactions import annotate_posts

router = APIRouter(prefix="/user", tags=["Users"])


@router.get("/people", response_model=list[schemas.PersonCard])
def list_people(
    limit: int = Query(settings.LIST_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> list[schemas.PersonCard]:
    """
    People directory, newest members first.

    The current user is left out of their own directory.
    """
    users = social_graph.list_people(db, current_user, limit=limit)
    return [schemas.PersonCard.model_validate(u) for u in users]


@router.post("/follow-statuses", response_model=dict[str, bool])
def get_follow_statuses(
    payload: schemas.FollowStatusesRequest,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> dict[str, bool]:
    """Batch check which of the given users the current user follows."""
    return social_graph.follow_statuses(db, current_user, payload.user_ids)


@router.post("/{id}/follow", response_model=schemas.SuccessResponse)
def follow_user(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.SuccessResponse:
    """Follow a user. Following someone twice is not an error."""
    created = social_graph.follow(db, current_user, id)
    if not created:
        return schemas.SuccessResponse(message="Already following")
    return schemas.SuccessResponse()


@router.delete("/{id}/follow", response_model=schemas.SuccessResponse)
def unfollow_user(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.SuccessResponse:
    """Unfollow a user."""
    social_graph.unfollow(db, current_user, id)
    return schemas.SuccessResponse()


@router.get("/{id}/follow", response_model=schemas.FollowStatus)
def get_follow_status(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.FollowStatus:
    return schemas.FollowStatus(is_following=social_graph.is_following(db, current_user, id))


@router.get("/{id}/posts", response_model=list[schemas.Post])
def list_user_posts(
    id: str,
    limit: int = Query(settings.PROFILE_POSTS_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> list[schemas.Post]:
    """Posts authored by a user, newest first."""
    if not db.get(models.User, id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    posts = (
        db.query(models.Post)
        .options(joinedload(models.Post.author))
        .filter(models.Post.author_id == id)
        .order_by(models.Post.created_at.desc())
        .limit(limit)
        .all()
    )
    annotate_posts(db, posts, current_user.id if current_user else None)

    return [schemas.Post.model_validate(p) for p in posts]
