from __future__ import annotations

import os

# Must be set before any atelier import: db and auth read them at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS"] = "0"
os.environ["SEED_DEMO_DATA"] = "0"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")

from typing import Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from atelier import models  # noqa: E402
from atelier.auth import create_access_token  # noqa: E402
from atelier.db import Base, SessionLocal, engine  # noqa: E402
from atelier.features import Feature, registry  # noqa: E402
from atelier.main import app, run_startup_tasks  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def bootstrap() -> None:
    Base.metadata.create_all(engine)
    run_startup_tasks()


@pytest.fixture(autouse=True)
def clean_tables() -> Generator[None, None, None]:
    """Empty every table and restore feature flags after each test."""
    yield
    Base.metadata.create_all(engine)
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())
    for feature in Feature:
        registry.enable(feature)
    registry.reset()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def make_user(db: Session) -> Callable[..., models.User]:
    """Factory for persisted users."""
    counter = {"n": 0}

    def _make_user(name: str | None = None, **fields) -> models.User:
        counter["n"] += 1
        n = counter["n"]
        user = models.User(
            name=name or f"User {n}",
            email=fields.pop("email", f"user{n}@example.com"),
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def alice(make_user) -> models.User:
    return make_user("Alice")


@pytest.fixture()
def bob(make_user) -> models.User:
    return make_user("Bob")


@pytest.fixture()
def carol(make_user) -> models.User:
    return make_user("Carol")


@pytest.fixture()
def auth_headers() -> Callable[[models.User], dict[str, str]]:
    """Bearer header for a user."""

    def _auth_headers(user: models.User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers


@pytest.fixture()
def make_post(db: Session) -> Callable[..., models.Post]:
    def _make_post(author: models.User, content: str = "Hello world", **fields) -> models.Post:
        post = models.Post(author_id=author.id, content=content, **fields)
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make_post
