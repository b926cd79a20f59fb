"""Direct messaging endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..deps import get_db
from ..services import messaging

router = APIRouter(prefix="", tags=["Messages"])


@router.get("/conversations", response_model=list[schemas.ConversationSummary])
def list_conversations(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.ConversationSummary]:
    """
    Conversations of the current user, most recently active first.

    Each entry has the other participant, the latest message and how many
    messages from the other participant are still unread.
    """
    summaries = messaging.list_conversations(db, current_user)
    return [
        schemas.ConversationSummary(
            id=s.id,
            other_user=schemas.UserSummary.model_validate(s.other_user),
            latest_message=(
                schemas.Message.model_validate(s.latest_message) if s.latest_message else None
            ),
            unread_count=s.unread_count,
            updated_at=s.updated_at,
        )
        for s in summaries
    ]


@router.post("/conversations", response_model=schemas.Conversation)
def get_or_create_conversation(
    payload: schemas.ConversationCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Conversation:
    """Return the conversation with a user, starting one if there is none yet."""
    conversation = messaging.get_or_create_conversation(db, current_user, payload.user_id)
    return schemas.Conversation.model_validate(conversation)


@router.get("/conversations/unread-count", response_model=schemas.UnreadCount)
def get_unread_message_count(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.UnreadCount:
    return schemas.UnreadCount(unread_count=messaging.unread_message_total(db, current_user))


@router.get("/conversations/{id}", response_model=schemas.ConversationThread)
def open_conversation(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.ConversationThread:
    """
    Open a conversation.

    Returns every message oldest first and marks the other participant's
    messages as read.
    """
    conversation = messaging.open_conversation(db, current_user, id)
    return schemas.ConversationThread.model_validate(conversation)


@router.post(
    "/conversations/{id}/messages",
    response_model=schemas.Message,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    id: str,
    payload: schemas.MessageCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Message:
    message = messaging.create_message(db, current_user, id, payload.content)
    return schemas.Message.model_validate(message)


@router.post("/conversations/{id}/read", response_model=schemas.MarkAllReadResponse)
def mark_conversation_read(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MarkAllReadResponse:
    """Mark the other participant's messages in a conversation as read."""
    updated = messaging.mark_thread_read(db, current_user, id)
    return schemas.MarkAllReadResponse(updated=updated)


@router.post("/messages/{id}/read", response_model=schemas.Message)
def mark_message_read(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Message:
    """Mark a single message as read. Recipient only."""
    message = messaging.mark_message_read(db, current_user, id)
    return schemas.Message.model_validate(message)
