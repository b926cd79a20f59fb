"""System endpoints (health, config)."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas, settings
from ..deps import get_db
from ..features import registry

router = APIRouter(prefix="", tags=["System"])
logger = logging.getLogger(__name__)

# Global startup time for uptime calculation
_STARTUP_TIME = time.time()


@router.get("/health", response_model=schemas.HealthResponse)
def get_health() -> schemas.HealthResponse:
    """Liveness check."""
    uptime_s = time.time() - _STARTUP_TIME
    return schemas.HealthResponse(status="ok", uptime_s=uptime_s)


@router.get("/config", response_model=schemas.Config)
def get_public_config(db: Session = Depends(get_db)) -> schemas.Config:
    """
    Public configuration limits for the client, and which features the
    database is provisioned for.
    """
    return schemas.Config(
        max_image_bytes=settings.IMAGE_SIZE_LIMIT_BYTES,
        max_portfolio_inline_image_bytes=settings.PORTFOLIO_IMAGE_MAX_BYTES,
        features=registry.snapshot(db),
    )
