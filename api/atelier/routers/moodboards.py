"""Mood board endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from ..auth import get_current_user, get_current_user_optional, require_ownership
from ..db import utcnow
from ..deps import get_db
from ..features import Feature, is_available, require_feature
from ..utils.ordering import next_order

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/moodboards", tags=["Mood Boards"])

PREVIEW_ITEMS = 4


def _serialize(board: models.MoodBoard, item_count: int) -> schemas.MoodBoard:
    item = schemas.MoodBoard.model_validate(board)
    item.item_count = item_count
    item.preview_items = [
        schemas.MoodBoardItem.model_validate(i) for i in board.items[:PREVIEW_ITEMS]
    ]
    return item


def _get_board_or_404(db: Session, board_id: str) -> models.MoodBoard:
    board = db.get(models.MoodBoard, board_id)
    if not board:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Mood board not found",
        )
    return board


@router.get("", response_model=list[schemas.MoodBoard])
def list_mood_boards(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.MoodBoard]:
    """Current user's mood boards, most recently updated first."""
    if not is_available(db, Feature.MOOD_BOARDS):
        return []

    boards = (
        db.query(models.MoodBoard)
        .options(selectinload(models.MoodBoard.items))
        .filter(models.MoodBoard.owner_id == current_user.id)
        .order_by(models.MoodBoard.updated_at.desc())
        .all()
    )
    if not boards:
        return []

    counts = dict(
        db.query(models.MoodBoardItem.mood_board_id, func.count(models.MoodBoardItem.id))
        .filter(models.MoodBoardItem.mood_board_id.in_([b.id for b in boards]))
        .group_by(models.MoodBoardItem.mood_board_id)
        .all()
    )
    return [_serialize(b, counts.get(b.id, 0)) for b in boards]


@router.post("", response_model=schemas.MoodBoard, status_code=status.HTTP_201_CREATED)
def create_mood_board(
    payload: schemas.MoodBoardCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MoodBoard:
    require_feature(db, Feature.MOOD_BOARDS)

    board = models.MoodBoard(
        owner_id=current_user.id,
        title=payload.title,
        description=payload.description,
        is_public=payload.is_public,
    )
    db.add(board)
    db.commit()
    db.refresh(board)

    logger.info(f"User {current_user.id} created mood board {board.id}")
    return _serialize(board, 0)


@router.get("/{id}", response_model=schemas.MoodBoard)
def get_mood_board(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.MoodBoard:
    """
    A single mood board. Private boards are only visible to their owner and
    look missing to everyone else.
    """
    if not is_available(db, Feature.MOOD_BOARDS):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Mood board not found",
        )

    board = _get_board_or_404(db, id)
    is_owner = current_user is not None and board.owner_id == current_user.id
    if not board.is_public and not is_owner:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Mood board not found",
        )

    return _serialize(board, len(board.items))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_mood_board(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    """Delete a mood board and everything pinned to it. Owner only."""
    require_feature(db, Feature.MOOD_BOARDS)
    board = _get_board_or_404(db, id)
    require_ownership(board.owner_id, current_user)

    db.delete(board)
    db.commit()


@router.post(
    "/{id}/items",
    response_model=schemas.MoodBoardItem,
    status_code=status.HTTP_201_CREATED,
)
def add_mood_board_item(
    id: str,
    payload: schemas.MoodBoardItemCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MoodBoardItem:
    """
    Pin an image to the end of a mood board. Owner only.

    When no image_url is given, the image of the referenced post or
    portfolio item is used.
    """
    require_feature(db, Feature.MOOD_BOARDS)
    board = _get_board_or_404(db, id)
    require_ownership(board.owner_id, current_user)

    image_url = payload.image_url
    if payload.post_id:
        post = db.get(models.Post, payload.post_id)
        if not post:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Post not found",
            )
        image_url = image_url or post.image_url
    if payload.portfolio_item_id:
        portfolio_item = db.get(models.PortfolioItem, payload.portfolio_item_id)
        if not portfolio_item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Portfolio item not found",
            )
        image_url = image_url or portfolio_item.image_url

    item = models.MoodBoardItem(
        mood_board_id=board.id,
        post_id=payload.post_id,
        portfolio_item_id=payload.portfolio_item_id,
        image_url=image_url,
        order=next_order(db, models.MoodBoardItem.order, models.MoodBoardItem.mood_board_id == board.id),
    )
    db.add(item)
    board.updated_at = utcnow()
    db.commit()
    db.refresh(item)

    return schemas.MoodBoardItem.model_validate(item)


@router.delete("/{id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_mood_board_item(
    id: str,
    item_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    require_feature(db, Feature.MOOD_BOARDS)
    board = _get_board_or_404(db, id)
    require_ownership(board.owner_id, current_user)

    item = db.get(models.MoodBoardItem, item_id)
    if not item or item.mood_board_id != board.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Mood board item not found",
        )

    db.delete(item)
    board.updated_at = utcnow()
    db.commit()
