"""Test demo data seeding."""

from __future__ import annotations

from atelier import models, settings
from atelier.seed import DEMO_POSTS, DEMO_USERS, ensure_seed_data


def test_seed_skipped_when_disabled(db, monkeypatch):
    monkeypatch.setattr(settings, "SEED_DEMO_DATA", False)
    ensure_seed_data()
    assert db.query(models.User).count() == 0


def test_seed_inserts_demo_data_once(db, monkeypatch):
    monkeypatch.setattr(settings, "SEED_DEMO_DATA", True)

    ensure_seed_data()
    ensure_seed_data()

    emails = {email for (email,) in db.query(models.User.email).all()}
    assert emails == {u["email"] for u in DEMO_USERS}
    assert db.query(models.Post).count() == len(DEMO_POSTS)
    assert db.query(models.Follow).count() == 2
    assert db.query(models.Notification).count() == 3


def test_seed_skipped_when_users_exist(db, alice, monkeypatch):
    monkeypatch.setattr(settings, "SEED_DEMO_DATA", True)
    ensure_seed_data()
    assert db.query(models.User).count() == 1
