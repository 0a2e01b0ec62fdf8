import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlmodel import Session, col, select

from heartwise import crud
from heartwise.api.deps import CurrentAdmin, CurrentUser, SessionDep
from heartwise.models import (
    ChatMessage,
    ChatMessageCreate,
    ChatMessagePublic,
    ChatRoom,
    ChatRoomCreate,
    ChatRoomPublic,
    InfoMessage,
    SeedResult,
)
from heartwise.storage import get_storage

router = APIRouter(prefix="/live-chat", tags=["live-chat"])
logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50

DEFAULT_ROOMS = [
    ("General Fellowship", "General discussion for all community members to fellowship and share"),
    ("Dating Advice", "Share and discuss biblical dating advice and experiences"),
    ("Prayer Requests", "Share prayer requests and pray for one another"),
    ("Marriage Prep", "For those preparing for marriage or engaged couples"),
    ("Single & Seeking", "Support group for singles seeking God's will in relationships"),
    ("Faith & Relationships", "Discuss how faith impacts our relationships and dating life"),
    ("Testimonies & Stories", "Share your testimony and relationship success stories"),
]


# the admin seed creates only the core rooms
ADMIN_SEED_COUNT = 5


def seed_default_rooms(
    session: Session, rooms: list[tuple[str, str]] = DEFAULT_ROOMS
) -> SeedResult:
    existing = session.exec(select(ChatRoom)).all()
    if existing:
        return SeedResult(message="Chat rooms already exist", count=len(existing))

    for name, description in rooms:
        session.add(ChatRoom(name=name, description=description))
    session.commit()
    logger.info("Seeded %s default chat rooms", len(rooms))
    return SeedResult(
        message=f"Created {len(rooms)} chat rooms successfully",
        count=len(rooms),
    )


def _get_active_room(session: Session, room_id: uuid.UUID) -> ChatRoom:
    room = session.get(ChatRoom, room_id)
    if not room or not room.is_active:
        raise HTTPException(status_code=404, detail="Chat room not found")
    return room


def _to_public(session: Session, message: ChatMessage) -> ChatMessagePublic:
    if message.is_anonymous:
        return ChatMessagePublic.model_validate(message, update={"author_name": "Anonymous"})
    name, profile, _ = crud.author_details(
        session=session, user_id=message.user_id, use_full_name=False
    )
    author_image = (
        get_storage().get_url(session=session, storage_id=profile.profile_image)
        if profile
        else None
    )
    return ChatMessagePublic.model_validate(
        message, update={"author_name": name, "author_image": author_image}
    )


@router.get("/rooms", response_model=list[ChatRoomPublic])
def read_chat_rooms(session: SessionDep) -> Any:
    statement = (
        select(ChatRoom)
        .where(ChatRoom.is_active == True)  # noqa: E712
        .order_by(col(ChatRoom.created_at))
    )
    return session.exec(statement).all()


@router.post("/rooms", response_model=ChatRoomPublic)
def create_chat_room(
    *, session: SessionDep, current_user: CurrentUser, room_in: ChatRoomCreate
) -> Any:
    room = ChatRoom.model_validate(room_in)
    session.add(room)
    session.commit()
    session.refresh(room)
    return room


@router.post("/rooms/seed", response_model=SeedResult)
def seed_chat_rooms(session: SessionDep, current_user: CurrentAdmin) -> Any:
    return seed_default_rooms(session, DEFAULT_ROOMS[:ADMIN_SEED_COUNT])


@router.post("/rooms/seed-defaults", response_model=SeedResult)
def seed_chat_rooms_public(session: SessionDep) -> Any:
    """
    Unauthenticated variant used by a fresh install; a no-op once any room exists.
    """
    return seed_default_rooms(session)


@router.delete("/rooms/{id}", response_model=InfoMessage)
def delete_chat_room(id: uuid.UUID, session: SessionDep, current_user: CurrentAdmin) -> Any:
    room = session.get(ChatRoom, id)
    if not room:
        raise HTTPException(status_code=404, detail="Chat room not found")
    room.is_active = False
    session.add(room)
    session.commit()
    logger.info("Chat room %s closed by %s", id, current_user.email)
    return InfoMessage(message="Chat room deleted successfully")


@router.get("/rooms/{id}/messages", response_model=list[ChatMessagePublic])
def read_chat_messages(id: uuid.UUID, session: SessionDep) -> Any:
    statement = (
        select(ChatMessage)
        .where(ChatMessage.room_id == id)
        .order_by(col(ChatMessage.created_at).desc())
        .limit(HISTORY_LIMIT)
    )
    latest = session.exec(statement).all()
    # newest page, returned oldest-first
    return [_to_public(session, m) for m in reversed(latest)]


@router.post("/rooms/{id}/messages", response_model=ChatMessagePublic)
def send_chat_message(
    *,
    id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    message_in: ChatMessageCreate,
) -> Any:
    content = message_in.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Message cannot be empty")
    room = _get_active_room(session, id)

    message = ChatMessage(
        room_id=room.id,
        user_id=current_user.id,
        content=content,
        is_anonymous=message_in.is_anonymous,
    )
    session.add(message)
    session.commit()
    session.refresh(message)
    return _to_public(session, message)
