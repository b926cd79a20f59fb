from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from . import schemas, settings  # noqa: E402
from .db import engine  # noqa: E402
from .features import registry  # noqa: E402
from .middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware  # noqa: E402
from .routers import (  # noqa: E402
    comments,
    events,
    jobs,
    messages,
    moodboards,
    notifications,
    offerings,
    posts,
    profiles,
    system,
    users,
)
from .seed import ensure_seed_data  # noqa: E402

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

_STARTUP_COMPLETE = False


def _alembic_config() -> Config:
    base_dir = Path(__file__).resolve().parent.parent
    cfg = Config(str(base_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(base_dir / "alembic"))
    return cfg


def run_migrations() -> None:
    logger.info("run_migrations: Starting...")
    try:
        alembic_cfg = _alembic_config()
        head = ScriptDirectory.from_config(alembic_cfg).get_current_head()

        try:
            with engine.connect() as connection:
                current_heads = MigrationContext.configure(connection).get_current_heads()
        finally:
            # Ensure connection is closed before calling command.upgrade
            engine.dispose()

        if head in current_heads:
            logger.info(f"Database is up to date (revision: {head}), skipping migrations.")
            return

        logger.info(f"Current revision(s): {current_heads}, target revision: {head}.")
        command.upgrade(alembic_cfg, "head")
        logger.info("run_migrations: Completed successfully.")
    except Exception as e:
        logger.error(f"run_migrations: Error occurred: {e}", exc_info=True)
        raise


def run_startup_tasks() -> None:
    global _STARTUP_COMPLETE
    if _STARTUP_COMPLETE:
        logger.info("run_startup_tasks: Already completed, skipping.")
        return
    try:
        if settings.RUN_MIGRATIONS:
            run_migrations()
        # Probe after migrating so newly created tables are picked up
        registry.probe(engine)
        ensure_seed_data()
        _STARTUP_COMPLETE = True
        logger.info("Startup tasks completed.")
    except Exception as e:
        logger.error(f"Startup tasks failed: {e}", exc_info=True)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    # Server won't start until these complete
    run_startup_tasks()
    logger.info("Atelier API server ready")
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="Atelier API",
    version="1.0.0",
    description="Social network API for creative professionals",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation failures as RFC 7807 problems keyed by field."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [part for part in error.get("loc", ()) if not isinstance(part, int)]
        field = str(loc[-1]) if len(loc) > 1 else "body"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))

    problem = schemas.Problem(
        title="Validation failed",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail="One or more fields are invalid.",
        errors=errors,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


# In production, set CORS_ORIGINS environment variable to comma-separated list of allowed origins
cors_origins_str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost")
if cors_origins_str == "*":
    logger.warning(
        "CORS is configured to allow all origins. "
        "This is insecure for production. Set CORS_ORIGINS to specific domains."
    )
cors_origins = [origin.strip() for origin in cors_origins_str.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    max_age=600,
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)


app.include_router(system.router)
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(posts.router)
app.include_router(comments.router)
app.include_router(notifications.router)
app.include_router(messages.router)
app.include_router(jobs.router)
app.include_router(events.router)
app.include_router(moodboards.router)
app.include_router(offerings.router)
