"""social features: follows, notifications, messaging, events, portfolios,
services and mood boards

Deployments that have not applied this revision yet keep serving the core
feed; these features report themselves as not provisioned.

Revision ID: 202610190002
Revises: 202610190001
Create Date: 2026-10-19 00:00:01.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "202610190002"
down_revision = "202610190001"
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(length=36), primary_key=True)


def _fk(name: str, target: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        sa.String(length=36),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "follows",
        _id(),
        _fk("follower_id", "users.id"),
        _fk("following_id", "users.id"),
        _timestamp("created_at"),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follow_follower_following"),
    )
    op.create_index("ix_follows_follower_id", "follows", ["follower_id"])
    op.create_index("ix_follows_following_id", "follows", ["following_id"])
    op.create_index("ix_follows_created_at", "follows", ["created_at"])
    op.create_index(
        "ix_follows_following_created", "follows", ["following_id", sa.text("created_at DESC")]
    )

    op.create_table(
        "notifications",
        _id(),
        sa.Column("type", sa.String(length=20), nullable=False),
        _fk("recipient_id", "users.id"),
        _fk("sender_id", "users.id", nullable=True, ondelete="SET NULL"),
        _fk("post_id", "posts.id", nullable=True, ondelete="SET NULL"),
        sa.Column("metadata", sa.Text(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])
    op.create_index("ix_notifications_sender_id", "notifications", ["sender_id"])
    op.create_index("ix_notifications_read", "notifications", ["read"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])
    op.create_index(
        "ix_notifications_recipient_created",
        "notifications",
        ["recipient_id", sa.text("created_at DESC")],
    )

    op.create_table(
        "conversations",
        _id(),
        _fk("user1_id", "users.id"),
        _fk("user2_id", "users.id"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("user1_id", "user2_id", name="uq_conversation_users"),
        sa.CheckConstraint("user1_id < user2_id", name="ck_conversation_users_ordered"),
    )
    op.create_index("ix_conversations_user1_id", "conversations", ["user1_id"])
    op.create_index("ix_conversations_user2_id", "conversations", ["user2_id"])
    op.create_index("ix_conversations_updated_at", "conversations", ["updated_at"])

    op.create_table(
        "messages",
        _id(),
        _fk("conversation_id", "conversations.id"),
        _fk("sender_id", "users.id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
    )
    op.create_index("ix_messages_conversation_id", "messages", ["conversation_id"])
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("ix_messages_created_at", "messages", ["created_at"])
    op.create_index(
        "ix_messages_conversation_created", "messages", ["conversation_id", "created_at"]
    )

    op.create_table(
        "events",
        _id(),
        _fk("organizer_id", "users.id"),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        _timestamp("start_date"),
        _timestamp("end_date", nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at", nullable=True),
    )
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])
    op.create_index("ix_events_start_date", "events", ["start_date"])

    op.create_table(
        "services",
        _id(),
        _fk("provider_id", "users.id"),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price_range", sa.String(length=50), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
        _timestamp("updated_at", nullable=True),
    )
    op.create_index("ix_services_provider_id", "services", ["provider_id"])
    op.create_index("ix_services_created_at", "services", ["created_at"])

    op.create_table(
        "portfolio_items",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=True),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at", nullable=True),
    )
    op.create_index("ix_portfolio_items_user_id", "portfolio_items", ["user_id"])

    op.create_table(
        "mood_boards",
        _id(),
        _fk("owner_id", "users.id"),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_mood_boards_owner_id", "mood_boards", ["owner_id"])
    op.create_index("ix_mood_boards_updated_at", "mood_boards", ["updated_at"])

    op.create_table(
        "mood_board_items",
        _id(),
        _fk("mood_board_id", "mood_boards.id"),
        _fk("post_id", "posts.id", nullable=True, ondelete="SET NULL"),
        _fk("portfolio_item_id", "portfolio_items.id", nullable=True, ondelete="SET NULL"),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
    )
    op.create_index("ix_mood_board_items_mood_board_id", "mood_board_items", ["mood_board_id"])
    op.create_index("ix_mood_board_items_post_id", "mood_board_items", ["post_id"])


def downgrade() -> None:
    op.drop_table("mood_board_items")
    op.drop_table("mood_boards")
    op.drop_table("portfolio_items")
    op.drop_table("services")
    op.drop_table("events")
    op.drop_table("messages")
    op.drop_table("conversations")
    op.drop_table("notifications")
    op.drop_table("follows")
