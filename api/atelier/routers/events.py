"""Event listing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas, settings
from ..auth import get_current_user, require_ownership
from ..db import as_utc
from ..deps import get_db
from ..features import Feature, is_available, require_feature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])


def _event_fields(payload: schemas.EventCreate) -> dict:
    fields = payload.model_dump()
    fields["start_date"] = as_utc(payload.start_date)
    fields["end_date"] = as_utc(payload.end_date)
    return fields


def _get_event_or_404(db: Session, event_id: str) -> models.Event:
    event = (
        db.query(models.Event)
        .options(joinedload(models.Event.organizer))
        .filter(models.Event.id == event_id)
        .first()
    )
    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


@router.get("", response_model=list[schemas.Event])
def list_events(
    limit: int = Query(settings.LIST_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
) -> list[schemas.Event]:
    """Events ordered by start date, soonest first."""
    if not is_available(db, Feature.EVENTS):
        return []

    events = (
        db.query(models.Event)
        .options(joinedload(models.Event.organizer))
        .order_by(models.Event.start_date.asc())
        .limit(limit)
        .all()
    )
    return [schemas.Event.model_validate(e) for e in events]


@router.get("/{id}", response_model=schemas.Event)
def get_event(id: str, db: Session = Depends(get_db)) -> schemas.Event:
    if not is_available(db, Feature.EVENTS):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return schemas.Event.model_validate(_get_event_or_404(db, id))


@router.post("", response_model=schemas.Event, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: schemas.EventCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Event:
    require_feature(db, Feature.EVENTS)

    event = models.Event(organizer_id=current_user.id, **_event_fields(payload))
    db.add(event)
    db.commit()
    db.refresh(event)

    logger.info(f"User {current_user.id} created event {event.id}")
    return schemas.Event.model_validate(event)


@router.patch("/{id}", response_model=schemas.Event)
def update_event(
    id: str,
    payload: schemas.EventUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Event:
    """Replace an event. Organizer only."""
    require_feature(db, Feature.EVENTS)
    event = _get_event_or_404(db, id)
    require_ownership(event.organizer_id, current_user)

    for field, value in _event_fields(payload).items():
        setattr(event, field, value)
    db.commit()
    db.refresh(event)

    return schemas.Event.model_validate(event)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    require_feature(db, Feature.EVENTS)
    event = _get_event_or_404(db, id)
    require_ownership(event.organizer_id, current_user)

    db.delete(event)
    db.commit()
