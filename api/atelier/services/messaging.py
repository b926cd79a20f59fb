"""
Direct messaging service.

A conversation belongs to an unordered pair of users and there is at most one
per pair. Sending a message bumps the conversation's updated_at, which orders
conversation lists. Opening a thread marks the other participant's messages
as read; `load_thread` and `mark_thread_read` are the two halves of that and
`open_conversation` composes them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from .. import models
from ..db import utcnow
from ..features import Feature, is_available, require_feature

logger = logging.getLogger(__name__)


@dataclass
class ConversationSummary:
    """A conversation as listed for one participant."""

    id: str
    other_user: models.User
    latest_message: models.Message | None
    unread_count: int
    updated_at: datetime


def _ordered_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Participants in storage order: user1_id < user2_id."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def _find_conversation(db: Session, user_a: str, user_b: str) -> models.Conversation | None:
    user1_id, user2_id = _ordered_pair(user_a, user_b)
    return (
        db.query(models.Conversation)
        .options(
            joinedload(models.Conversation.user1),
            joinedload(models.Conversation.user2),
        )
        .filter(
            models.Conversation.user1_id == user1_id,
            models.Conversation.user2_id == user2_id,
        )
        .first()
    )


def _get_participating_conversation(
    db: Session, actor: models.User, conversation_id: str, *, with_messages: bool = False
) -> models.Conversation:
    query = db.query(models.Conversation).options(
        joinedload(models.Conversation.user1),
        joinedload(models.Conversation.user2),
    )
    if with_messages:
        query = query.options(
            selectinload(models.Conversation.messages).joinedload(models.Message.sender)
        )

    conversation = query.filter(models.Conversation.id == conversation_id).first()
    if not conversation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found",
        )

    require_participant(conversation, actor)
    return conversation


def require_participant(conversation: models.Conversation, actor: models.User) -> None:
    """Raises 403 unless actor is one of the two participants."""
    if actor.id not in conversation.participant_ids():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a participant in this conversation",
        )


def get_or_create_conversation(
    db: Session, actor: models.User, other_id: str
) -> models.Conversation:
    """
    Return the conversation between actor and other, creating it if needed.

    The pair is stored sorted, so (A, B) and (B, A) resolve to the same row
    and the unique constraint rejects a second conversation for the pair.

    Raises:
        HTTPException 400 when other is actor, 404 when other doesn't exist
    """
    if actor.id == other_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot create conversation with yourself",
        )

    require_feature(db, Feature.MESSAGING)

    existing = _find_conversation(db, actor.id, other_id)
    if existing:
        return existing

    if not db.get(models.User, other_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    user1_id, user2_id = _ordered_pair(actor.id, other_id)
    conversation = models.Conversation(user1_id=user1_id, user2_id=user2_id)
    db.add(conversation)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request created the conversation for this pair
        db.rollback()
        existing = _find_conversation(db, actor.id, other_id)
        if existing is None:
            raise
        return existing
    db.refresh(conversation)

    logger.info(f"Created conversation {conversation.id} between {actor.id} and {other_id}")
    return conversation


def create_message(
    db: Session, actor: models.User, conversation_id: str, content: str
) -> models.Message:
    """
    Append a message to a conversation and bump its updated_at.

    Raises:
        HTTPException 404 if the conversation doesn't exist,
        403 if actor is not a participant
    """
    require_feature(db, Feature.MESSAGING)

    conversation = db.get(models.Conversation, conversation_id)
    if not conversation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found",
        )
    require_participant(conversation, actor)

    message = models.Message(
        conversation_id=conversation.id,
        sender_id=actor.id,
        content=content,
        read=False,
    )
    db.add(message)
    conversation.updated_at = utcnow()
    db.commit()
    db.refresh(message)

    return message


def load_thread(db: Session, actor: models.User, conversation_id: str) -> models.Conversation:
    """Conversation with participants and messages (oldest first). No side effects."""
    require_feature(db, Feature.MESSAGING)
    return _get_participating_conversation(db, actor, conversation_id, with_messages=True)


def mark_thread_read(db: Session, actor: models.User, conversation_id: str) -> int:
    """
    Mark every unread message sent by the other participant as read.

    Returns:
        Number of messages updated
    """
    require_feature(db, Feature.MESSAGING)
    _get_participating_conversation(db, actor, conversation_id)

    count = (
        db.query(models.Message)
        .filter(
            models.Message.conversation_id == conversation_id,
            models.Message.sender_id != actor.id,
            models.Message.read == False,
        )
        .update({"read": True}, synchronize_session=False)
    )
    db.commit()

    return count


def open_conversation(db: Session, actor: models.User, conversation_id: str) -> models.Conversation:
    """
    Load a thread for display and consume its unread state.

    Opening a conversation marks the other participant's messages as read,
    so the returned messages already reflect read=True.
    """
    mark_thread_read(db, actor, conversation_id)
    db.expire_all()
    return load_thread(db, actor, conversation_id)


def mark_message_read(db: Session, actor: models.User, message_id: str) -> models.Message:
    """
    Mark a single message as read. Only its recipient may do this.

    Raises:
        HTTPException 404 if the message doesn't exist, 403 if actor is the
        sender or not a participant
    """
    require_feature(db, Feature.MESSAGING)

    message = db.get(models.Message, message_id)
    if not message:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found",
        )
    require_participant(message.conversation, actor)
    if message.sender_id == actor.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the recipient can mark a message as read",
        )

    if not message.read:
        message.read = True
        db.commit()
        db.refresh(message)

    return message


def list_conversations(db: Session, actor: models.User) -> list[ConversationSummary]:
    """
    Conversations of actor, most recently updated first.

    Each entry carries the other participant, the latest message by
    created_at, and the count of unread messages not sent by actor.
    """
    if not is_available(db, Feature.MESSAGING):
        return []

    conversations = (
        db.query(models.Conversation)
        .options(
            joinedload(models.Conversation.user1),
            joinedload(models.Conversation.user2),
        )
        .filter(
            or_(
                models.Conversation.user1_id == actor.id,
                models.Conversation.user2_id == actor.id,
            )
        )
        .order_by(models.Conversation.updated_at.desc(), models.Conversation.id)
        .all()
    )
    if not conversations:
        return []

    conversation_ids = [c.id for c in conversations]
    unread = dict(
        db.query(models.Message.conversation_id, func.count(models.Message.id))
        .filter(
            models.Message.conversation_id.in_(conversation_ids),
            models.Message.sender_id != actor.id,
            models.Message.read == False,
        )
        .group_by(models.Message.conversation_id)
        .all()
    )

    latest_times = (
        db.query(
            models.Message.conversation_id,
            func.max(models.Message.created_at).label("latest_at"),
        )
        .filter(models.Message.conversation_id.in_(conversation_ids))
        .group_by(models.Message.conversation_id)
        .subquery()
    )
    candidates = (
        db.query(models.Message)
        .options(joinedload(models.Message.sender))
        .join(
            latest_times,
            and_(
                models.Message.conversation_id == latest_times.c.conversation_id,
                models.Message.created_at == latest_times.c.latest_at,
            ),
        )
        .order_by(models.Message.id)
        .all()
    )
    # Ties on created_at resolve to the highest id
    latest: dict[str, models.Message] = {}
    for message in candidates:
        latest[message.conversation_id] = message

    return [
        ConversationSummary(
            id=conversation.id,
            other_user=conversation.other_user(actor.id),
            latest_message=latest.get(conversation.id),
            unread_count=unread.get(conversation.id, 0),
            updated_at=conversation.updated_at,
        )
        for conversation in conversations
    ]


def unread_message_total(db: Session, actor: models.User) -> int:
    """Unread messages addressed to actor across all conversations."""
    if not is_available(db, Feature.MESSAGING):
        return 0

    return (
        db.query(func.count(models.Message.id))
        .join(models.Conversation, models.Message.conversation_id == models.Conversation.id)
        .filter(
            or_(
                models.Conversation.user1_id == actor.id,
                models.Conversation.user2_id == actor.id,
            ),
            models.Message.sender_id != actor.id,
            models.Message.read == False,
        )
        .scalar()
        or 0
    )
