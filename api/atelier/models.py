from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship

from .db import Base, utcnow


def new_id() -> str:
    """Opaque string identifier for every entity."""
    return str(uuid.uuid4())


# ============================================================================
# CORE ENTITIES
# ============================================================================


class User(Base):
    """User account with profile information."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    image = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    skills = Column(JSON, nullable=False, default=list)  # ["Branding", "Motion"]
    tools = Column(JSON, nullable=False, default=list)  # ["Figma", "Blender"]

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    # Relationships
    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")
    portfolio_items = relationship(
        "PortfolioItem",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="PortfolioItem.order",
    )
    mood_boards = relationship("MoodBoard", back_populates="owner", cascade="all, delete-orphan")
    services = relationship("Service", back_populates="provider", cascade="all, delete-orphan")


class Post(Base):
    """Feed post. At least one of content/image_url is present."""

    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=new_id)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    # Relationships
    author = relationship("User", back_populates="posts")
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan")
    bookmarks = relationship("Bookmark", back_populates="post", cascade="all, delete-orphan")
    comments = relationship(
        "Comment", back_populates="post", cascade="all, delete-orphan", order_by="Comment.created_at"
    )

    __table_args__ = (Index("ix_posts_author_created", author_id, created_at.desc()),)


# ============================================================================
# SOCIAL FEATURES
# ============================================================================


class Like(Base):
    """Like on a post, at most one per (post, user)."""

    __tablename__ = "likes"

    id = Column(String(36), primary_key=True, default=new_id)
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    post = relationship("Post", back_populates="likes")

    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_like_post_user"),)


class Bookmark(Base):
    """Bookmark on a post, at most one per (post, user)."""

    __tablename__ = "bookmarks"

    id = Column(String(36), primary_key=True, default=new_id)
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    post = relationship("Post", back_populates="bookmarks")

    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_bookmark_post_user"),)


class Comment(Base):
    """Comment on a post. Append-only, many per user per post."""

    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=new_id)
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    # Relationships
    post = relationship("Post", back_populates="comments")
    user = relationship("User")

    __table_args__ = (Index("ix_comments_post_created", post_id, created_at),)


class Follow(Base):
    """User following relationship."""

    __tablename__ = "follows"

    id = Column(String(36), primary_key=True, default=new_id)
    follower_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follow_follower_following"),
        Index("ix_follows_following_created", following_id, created_at.desc()),
    )


class Notification(Base):
    """Notification delivered to a user (like, comment, connect, insight)."""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    type = Column(String(20), nullable=False)  # like | comment | connect | insight
    recipient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="SET NULL"), nullable=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", Text, nullable=True)
    read = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    # Relationships
    recipient = relationship("User", foreign_keys=[recipient_id])
    sender = relationship("User", foreign_keys=[sender_id])

    __table_args__ = (Index("ix_notifications_recipient_created", recipient_id, created_at.desc()),)


# ============================================================================
# MESSAGING
# ============================================================================


class Conversation(Base):
    """Direct conversation between an unordered pair of users."""

    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=new_id)
    user1_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user2_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    # Bumped on every new message; conversation lists sort on it
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    # Relationships
    user1 = relationship("User", foreign_keys=[user1_id])
    user2 = relationship("User", foreign_keys=[user2_id])
    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )

    # The pair is stored sorted, so the unique constraint covers both orderings
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_conversation_users"),
        CheckConstraint("user1_id < user2_id", name="ck_conversation_users_ordered"),
    )

    def participant_ids(self) -> tuple[str, str]:
        return (self.user1_id, self.user2_id)

    def other_user(self, user_id: str) -> "User":
        return self.user2 if self.user1_id == user_id else self.user1


class Message(Base):
    """Message within a conversation."""

    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_id)
    conversation_id = Column(
        String(36), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    # Relationships
    conversation = relationship("Conversation", back_populates="messages")
    sender = relationship("User")

    __table_args__ = (Index("ix_messages_conversation_created", conversation_id, created_at),)


# ============================================================================
# LISTINGS
# ============================================================================


class Job(Base):
    """Job listing."""

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=new_id)
    posted_by_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    company = Column(String(100), nullable=True)
    location = Column(String(100), nullable=True)
    type = Column(String(20), nullable=False)  # Full-time, Part-time, ...
    compensation = Column(String(100), nullable=True)
    application_url = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    posted_by = relationship("User")


class Event(Base):
    """Event listing."""

    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    organizer_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    location = Column(String(200), nullable=False)
    address = Column(String(500), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    category = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    organizer = relationship("User")


class Service(Base):
    """Service offered by a user."""

    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=new_id)
    provider_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    price_range = Column(String(50), nullable=False)
    category = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    provider = relationship("User", back_populates="services")


# ============================================================================
# PORTFOLIOS & MOOD BOARDS
# ============================================================================


class PortfolioItem(Base):
    """Portfolio image owned by a user, ordered by `order`."""

    __tablename__ = "portfolio_items"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(Text, nullable=False)
    title = Column(String(100), nullable=True)
    description = Column(String(500), nullable=True)
    order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    user = relationship("User", back_populates="portfolio_items")


class MoodBoard(Base):
    """Collection of saved images owned by a user."""

    __tablename__ = "mood_boards"

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    owner = relationship("User", back_populates="mood_boards")
    items = relationship(
        "MoodBoardItem",
        back_populates="mood_board",
        cascade="all, delete-orphan",
        order_by="MoodBoardItem.order",
    )


class MoodBoardItem(Base):
    """Image pinned to a mood board, either from a post or a raw URL."""

    __tablename__ = "mood_board_items"

    id = Column(String(36), primary_key=True, default=new_id)
    mood_board_id = Column(
        String(36), ForeignKey("mood_boards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="SET NULL"), nullable=True, index=True)
    portfolio_item_id = Column(
        String(36), ForeignKey("portfolio_items.id", ondelete="SET NULL"), nullable=True
    )
    image_url = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    mood_board = relationship("MoodBoard", back_populates="items")
