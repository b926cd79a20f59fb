from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from . import models, settings
from .db import SessionLocal, utcnow
from .features import Feature, is_available

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {
        "name": "Ada Moreau",
        "email": "ada@example.com",
        "bio": "Brand designer working with independent studios.",
        "skills": ["Branding", "Typography"],
        "tools": ["Figma", "Illustrator"],
    },
    {
        "name": "Kenji Sato",
        "email": "kenji@example.com",
        "bio": "Motion and 3D for music videos.",
        "skills": ["Motion", "3D Modeling"],
        "tools": ["Blender", "After Effects"],
    },
    {
        "name": "Lina Haddad",
        "email": "lina@example.com",
        "bio": "Documentary photographer.",
        "skills": ["Photography"],
        "tools": ["Lightroom"],
    },
]

DEMO_POSTS = [
    ("ada@example.com", "New identity for a neighbourhood bakery, from sketch to signage."),
    ("kenji@example.com", "Rendering tests for the next video. Feedback welcome!"),
    ("lina@example.com", "Back from two weeks on the coast, sorting through 3000 frames."),
]


def _seed(db: Session) -> None:
    users = {}
    for fields in DEMO_USERS:
        user = models.User(**fields)
        db.add(user)
        users[user.email] = user
    db.flush()

    now = utcnow()
    posts = []
    for offset, (email, content) in enumerate(DEMO_POSTS):
        post = models.Post(
            author_id=users[email].id,
            content=content,
            created_at=now - timedelta(hours=offset * 20),
        )
        db.add(post)
        posts.append(post)
    db.flush()

    ada, kenji, lina = (users[u["email"]] for u in DEMO_USERS)

    if is_available(db, Feature.FOLLOWS):
        db.add(models.Follow(follower_id=kenji.id, following_id=ada.id))
        db.add(models.Follow(follower_id=lina.id, following_id=ada.id))

    if is_available(db, Feature.NOTIFICATIONS):
        db.add_all(
            [
                models.Notification(
                    type="connect", recipient_id=ada.id, sender_id=kenji.id, created_at=now
                ),
                models.Notification(
                    type="like",
                    recipient_id=ada.id,
                    sender_id=lina.id,
                    post_id=posts[0].id,
                    created_at=now - timedelta(days=1),
                ),
                models.Notification(
                    type="comment",
                    recipient_id=kenji.id,
                    sender_id=ada.id,
                    post_id=posts[1].id,
                    created_at=now - timedelta(days=3),
                ),
            ]
        )

    db.commit()


def ensure_seed_data() -> None:
    """
    Insert demo users, posts and notifications for local development.

    Only runs when SEED_DEMO_DATA is set and there are no users yet.
    """
    if not settings.SEED_DEMO_DATA:
        logger.info("ensure_seed_data: SEED_DEMO_DATA not set, skipping.")
        return

    db = SessionLocal()
    try:
        if db.query(models.User.id).first() is not None:
            logger.info("ensure_seed_data: Users already exist, skipping.")
            return
        _seed(db)
        logger.info(f"ensure_seed_data: Created {len(DEMO_USERS)} demo users.")
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level="INFO")
    ensure_seed_data()
