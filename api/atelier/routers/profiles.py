"""Profile and portfolio endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas, settings
from ..auth import get_current_user, get_current_user_optional, require_ownership
from ..deps import get_db
from ..features import Feature, is_available, require_feature
from ..services import social_graph
from ..utils.ordering import next_order
from ..validation import data_url_size

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Profiles"])


def _portfolio(db: Session, user_id: str) -> list[models.PortfolioItem]:
    if not is_available(db, Feature.PORTFOLIO):
        return []
    return (
        db.query(models.PortfolioItem)
        .filter(models.PortfolioItem.user_id == user_id)
        .order_by(models.PortfolioItem.order.asc(), models.PortfolioItem.created_at.asc())
        .all()
    )


def _active_services(db: Session, user_id: str) -> list[models.Service]:
    if not is_available(db, Feature.SERVICES):
        return []
    return (
        db.query(models.Service)
        .filter(models.Service.provider_id == user_id, models.Service.is_active == True)
        .order_by(models.Service.created_at.desc())
        .all()
    )


def _me_response(db: Session, user: models.User) -> schemas.MeResponse:
    profile = schemas.UserProfile.model_validate(user)
    return schemas.MeResponse(
        **profile.model_dump(),
        portfolio_items=[schemas.PortfolioItem.model_validate(p) for p in _portfolio(db, user.id)],
    )


def _check_inline_image_size(image_url: str) -> None:
    """Reject inline data-URL images above the portfolio byte limit."""
    try:
        size = data_url_size(image_url)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if size > settings.PORTFOLIO_IMAGE_MAX_BYTES:
        limit_kb = settings.PORTFOLIO_IMAGE_MAX_BYTES // 1024
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Image is too large. Maximum size is {limit_kb} KB.",
        )


def _get_portfolio_item_or_404(db: Session, item_id: str) -> models.PortfolioItem:
    item = db.get(models.PortfolioItem, item_id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Portfolio item not found",
        )
    return item


# ============================================================================
# PROFILES
# ============================================================================


@router.get("/me", response_model=schemas.MeResponse)
def get_me(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MeResponse:
    """Current user's profile with their portfolio in display order."""
    return _me_response(db, current_user)


@router.patch("/me", response_model=schemas.MeResponse)
def update_me(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MeResponse:
    """Update the current user's profile. Omitted fields are left unchanged."""
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in ("skills", "tools") and value is None:
            value = []
        if field == "name" and value is None:
            continue
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)

    return _me_response(db, current_user)


@router.get("/user/{id}/profile", response_model=schemas.PublicProfile)
def get_public_profile(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.PublicProfile:
    """
    A user's public profile: portfolio, active services, counts and whether
    the viewer follows them.
    """
    user = db.get(models.User, id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    return schemas.PublicProfile(
        user=schemas.UserProfile.model_validate(user),
        portfolio_items=[schemas.PortfolioItem.model_validate(p) for p in _portfolio(db, id)],
        services=[schemas.Service.model_validate(s) for s in _active_services(db, id)],
        post_count=social_graph.post_counts(db, [id]).get(id, 0),
        follower_count=social_graph.follower_counts(db, [id]).get(id, 0),
        following_count=social_graph.following_counts(db, [id]).get(id, 0),
        is_following=social_graph.is_following(db, current_user, id),
    )


# ============================================================================
# PORTFOLIO
# ============================================================================


@router.post(
    "/portfolio",
    response_model=schemas.PortfolioItem,
    status_code=status.HTTP_201_CREATED,
)
def create_portfolio_item(
    payload: schemas.PortfolioItemCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.PortfolioItem:
    """
    Add an image to the current user's portfolio.

    Without an explicit order the item goes to the end.
    """
    require_feature(db, Feature.PORTFOLIO)
    _check_inline_image_size(payload.image_url)

    order = payload.order
    if order is None:
        order = next_order(
            db, models.PortfolioItem.order, models.PortfolioItem.user_id == current_user.id
        )

    item = models.PortfolioItem(
        user_id=current_user.id,
        image_url=payload.image_url,
        title=payload.title,
        description=payload.description,
        order=order,
    )
    db.add(item)
    db.commit()
    db.refresh(item)

    return schemas.PortfolioItem.model_validate(item)


@router.patch("/portfolio/{id}", response_model=schemas.PortfolioItem)
def update_portfolio_item(
    id: str,
    payload: schemas.PortfolioItemUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.PortfolioItem:
    require_feature(db, Feature.PORTFOLIO)
    item = _get_portfolio_item_or_404(db, id)
    require_ownership(item.user_id, current_user)
    _check_inline_image_size(payload.image_url)

    item.image_url = payload.image_url
    item.title = payload.title
    item.description = payload.description
    if payload.order is not None:
        item.order = payload.order
    db.commit()
    db.refresh(item)

    return schemas.PortfolioItem.model_validate(item)


@router.delete("/portfolio/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_portfolio_item(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    require_feature(db, Feature.PORTFOLIO)
    item = _get_portfolio_item_or_404(db, id)
    require_ownership(item.user_id, current_user)

    db.delete(item)
    db.commit()
