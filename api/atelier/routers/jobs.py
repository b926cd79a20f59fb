"""Job listing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas, settings
from ..auth import get_current_user, require_ownership
from ..deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _get_job_or_404(db: Session, job_id: str) -> models.Job:
    job = (
        db.query(models.Job)
        .options(joinedload(models.Job.posted_by))
        .filter(models.Job.id == job_id)
        .first()
    )
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found",
        )
    return job


@router.get("", response_model=list[schemas.Job])
def list_jobs(
    type: schemas.JobType | None = None,
    limit: int = Query(settings.LIST_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
) -> list[schemas.Job]:
    """Job listings, newest first, optionally filtered by type."""
    query = db.query(models.Job).options(joinedload(models.Job.posted_by))
    if type:
        query = query.filter(models.Job.type == type)

    jobs = query.order_by(models.Job.created_at.desc()).limit(limit).all()
    return [schemas.Job.model_validate(j) for j in jobs]


@router.get("/{id}", response_model=schemas.Job)
def get_job(id: str, db: Session = Depends(get_db)) -> schemas.Job:
    return schemas.Job.model_validate(_get_job_or_404(db, id))


@router.post("", response_model=schemas.Job, status_code=status.HTTP_201_CREATED)
def create_job(
    payload: schemas.JobCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Job:
    job = models.Job(posted_by_id=current_user.id, **payload.model_dump())
    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info(f"User {current_user.id} posted job {job.id}")
    return schemas.Job.model_validate(job)


@router.patch("/{id}", response_model=schemas.Job)
def update_job(
    id: str,
    payload: schemas.JobUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Job:
    """Replace a job listing. Poster only."""
    job = _get_job_or_404(db, id)
    require_ownership(job.posted_by_id, current_user)

    for field, value in payload.model_dump().items():
        setattr(job, field, value)
    db.commit()
    db.refresh(job)

    return schemas.Job.model_validate(job)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    job = _get_job_or_404(db, id)
    require_ownership(job.posted_by_id, current_user)

    db.delete(job)
    db.commit()
