"""Service offering endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import check_ownership, get_current_user, get_current_user_optional, require_ownership
from ..deps import get_db
from ..features import Feature, is_available, require_feature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Services"])


def _get_service_or_404(db: Session, service_id: str) -> models.Service:
    service = db.get(models.Service, service_id)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service not found",
        )
    return service


@router.post("/services", response_model=schemas.Service, status_code=status.HTTP_201_CREATED)
def create_service(
    payload: schemas.ServiceCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Service:
    require_feature(db, Feature.SERVICES)

    service = models.Service(provider_id=current_user.id, **payload.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)

    logger.info(f"User {current_user.id} listed service {service.id}")
    return schemas.Service.model_validate(service)


@router.get("/user/{id}/services", response_model=list[schemas.Service])
def list_user_services(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> list[schemas.Service]:
    """
    Services offered by a user, newest first.

    Inactive services are only listed for their provider.
    """
    if not is_available(db, Feature.SERVICES):
        return []

    query = db.query(models.Service).filter(models.Service.provider_id == id)
    if current_user is None or not check_ownership(id, current_user):
        query = query.filter(models.Service.is_active == True)

    services = query.order_by(models.Service.created_at.desc()).all()
    return [schemas.Service.model_validate(s) for s in services]


@router.patch("/services/{id}", response_model=schemas.Service)
def update_service(
    id: str,
    payload: schemas.ServiceUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Service:
    """Update a service. Provider only; omitted fields are left unchanged."""
    require_feature(db, Feature.SERVICES)
    service = _get_service_or_404(db, id)
    require_ownership(service.provider_id, current_user)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field != "category":
            continue
        setattr(service, field, value)
    db.commit()
    db.refresh(service)

    return schemas.Service.model_validate(service)


@router.delete("/services/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    require_feature(db, Feature.SERVICES)
    service = _get_service_or_404(db, id)
    require_ownership(service.provider_id, current_user)

    db.delete(service)
    db.commit()
