import logging
import uuid
from typing import Any

from fastapi import APIRouter, BackgroundTasks, HTTPException
from sqlmodel import Session, col, select

from heartwise import crud
from heartwise.api.deps import CurrentUser, OptionalUser, SessionDep
from heartwise.counsel.responder import run_ai_response_job
from heartwise.models import (
    Conversation,
    ConversationCreate,
    ConversationPublic,
    ConversationRename,
    InfoMessage,
    Message,
    MessageCreate,
    MessagePublic,
    NotificationPriority,
    NotificationType,
    User,
)

router = APIRouter(prefix="/chat", tags=["chat"])
logger = logging.getLogger(__name__)

NOTIFICATION_PREVIEW_CHARS = 50


def _get_owned_conversation(
    session: Session, conversation_id: uuid.UUID, user: User
) -> Conversation:
    conversation = session.get(Conversation, conversation_id)
    if not conversation or conversation.user_id != user.id:
        raise HTTPException(status_code=403, detail="Unauthorized")
    return conversation


def _preview(content: str) -> str:
    if len(content) > NOTIFICATION_PREVIEW_CHARS:
        return content[:NOTIFICATION_PREVIEW_CHARS] + "..."
    return content


@router.get("/conversations", response_model=list[ConversationPublic])
def read_conversations(session: SessionDep, current_user: OptionalUser) -> Any:
    if current_user is None:
        return []
    statement = (
        select(Conversation)
        .where(Conversation.user_id == current_user.id, Conversation.is_active == True)  # noqa: E712
        .order_by(col(Conversation.created_at).desc())
    )
    return session.exec(statement).all()


@router.post("/conversations", response_model=ConversationPublic)
def create_conversation(
    *, session: SessionDep, current_user: CurrentUser, conversation_in: ConversationCreate
) -> Any:
    conversation = Conversation.model_validate(
        conversation_in, update={"user_id": current_user.id}
    )
    session.add(conversation)
    session.commit()
    session.refresh(conversation)
    return conversation


@router.get("/conversations/{id}/messages", response_model=list[MessagePublic])
def read_conversation_messages(
    id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Any:
    _get_owned_conversation(session, id, current_user)
    statement = (
        select(Message)
        .where(Message.conversation_id == id)
        .order_by(col(Message.created_at))
    )
    return session.exec(statement).all()


@router.post("/conversations/{id}/messages", response_model=MessagePublic)
def send_message(
    *,
    id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    message_in: MessageCreate,
    background_tasks: BackgroundTasks,
) -> Any:
    """
    Store the user's message and queue the counselor reply.
    The reply arrives later as a separate message in the same conversation.
    """
    conversation = _get_owned_conversation(session, id, current_user)

    message = Message(
        conversation_id=conversation.id,
        user_id=current_user.id,
        content=message_in.content,
        is_ai=False,
    )
    session.add(message)
    session.commit()
    session.refresh(message)

    crud.create_admin_notification(
        session=session,
        type=NotificationType.new_message,
        title="New AI Chat Message",
        description=f'User sent: "{_preview(message_in.content)}"',
        related_id=message.id,
        priority=NotificationPriority.medium,
    )

    background_tasks.add_task(run_ai_response_job, conversation.id)
    logger.info("Queued AI reply for conversation %s", conversation.id)
    return message


@router.patch("/conversations/{id}", response_model=InfoMessage)
def rename_conversation(
    *,
    id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    conversation_in: ConversationRename,
) -> Any:
    conversation = _get_owned_conversation(session, id, current_user)
    title = conversation_in.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title cannot be empty")
    conversation.title = title
    session.add(conversation)
    session.commit()
    return InfoMessage(message="Conversation renamed successfully")


@router.delete("/conversations/{id}", response_model=InfoMessage)
def delete_conversation(
    id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Any:
    conversation = _get_owned_conversation(session, id, current_user)
    # Kept for the admin history, hidden from the owner's list.
    conversation.is_active = False
    session.add(conversation)
    session.commit()
    return InfoMessage(message="Conversation deleted successfully")
