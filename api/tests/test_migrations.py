"""Test that the migrations build the schema the models describe."""

from __future__ import annotations

from alembic import command
from sqlalchemy import create_engine, inspect

from atelier.db import Base
from atelier.main import _alembic_config


def _config(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    cfg = _alembic_config()
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg, url


def test_upgrade_creates_every_table(tmp_path):
    cfg, url = _config(tmp_path)
    command.upgrade(cfg, "head")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()

    assert set(Base.metadata.tables) <= tables


def test_core_revision_has_no_social_tables(tmp_path):
    cfg, url = _config(tmp_path)
    command.upgrade(cfg, "202610190001")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()

    assert {"users", "posts", "likes", "comments"} <= tables
    assert "follows" not in tables
    assert "conversations" not in tables


def test_downgrade_to_base(tmp_path):
    cfg, url = _config(tmp_path)
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()

    assert tables <= {"alembic_version"}
