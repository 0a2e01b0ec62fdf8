import logging
import secrets
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlmodel import Session, select

from heartwise import crud
from heartwise.api.deps import CurrentUser, SessionDep
from heartwise.core.config import settings
from heartwise.models import (
    ChatRoom,
    InfoMessage,
    VideoCall,
    VideoCallCreate,
    VideoCallCreated,
    VideoCallJoined,
    VideoCallParticipant,
    VideoCallParticipantPublic,
    VideoCallPublic,
    get_datetime_utc,
)
from heartwise.storage import get_storage

router = APIRouter(prefix="/video-calls", tags=["video-calls"])
logger = logging.getLogger(__name__)


def generate_meeting_url() -> str:
    meeting_id = secrets.token_hex(12)
    return f"{settings.MEETING_BASE_URL.rstrip('/')}/HeartWise-{meeting_id}"


def _active_participant(
    session: Session, call_id: uuid.UUID, user_id: uuid.UUID
) -> VideoCallParticipant | None:
    statement = select(VideoCallParticipant).where(
        VideoCallParticipant.call_id == call_id,
        VideoCallParticipant.user_id == user_id,
        VideoCallParticipant.is_active == True,  # noqa: E712
    )
    return session.exec(statement).first()


@router.get("/", response_model=list[VideoCallPublic])
def read_active_video_calls(session: SessionDep, room_id: uuid.UUID | None = None) -> Any:
    statement = select(VideoCall).where(VideoCall.is_active == True)  # noqa: E712
    if room_id:
        statement = statement.where(VideoCall.room_id == room_id)
    calls = []
    for call in session.exec(statement).all():
        host_name, _, _ = crud.author_details(
            session=session, user_id=call.host_user_id, use_full_name=False
        )
        calls.append(VideoCallPublic.model_validate(call, update={"host_name": host_name}))
    return calls


@router.post("/", response_model=VideoCallCreated)
def create_video_call(
    *, session: SessionDep, current_user: CurrentUser, call_in: VideoCallCreate
) -> Any:
    room = session.get(ChatRoom, call_in.room_id)
    if not room or not room.is_active:
        raise HTTPException(status_code=404, detail="Chat room not found")

    call = VideoCall.model_validate(
        call_in,
        update={
            "host_user_id": current_user.id,
            "meeting_url": generate_meeting_url(),
            "current_participants": 0,
        },
    )
    session.add(call)
    session.commit()
    session.refresh(call)
    logger.info("Video call %s scheduled in room %s", call.id, room.id)
    return VideoCallCreated(call_id=call.id, meeting_url=call.meeting_url)


@router.post("/{id}/join", response_model=VideoCallJoined)
def join_video_call(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    call = session.get(VideoCall, id)
    if not call or not call.is_active:
        raise HTTPException(status_code=404, detail="Call not found or inactive")

    if _active_participant(session, id, current_user.id):
        return VideoCallJoined(meeting_url=call.meeting_url, already_joined=True)

    if call.current_participants >= call.max_participants:
        raise HTTPException(status_code=409, detail="Call is full")

    session.add(VideoCallParticipant(call_id=id, user_id=current_user.id))
    call.current_participants += 1
    session.add(call)
    session.commit()
    return VideoCallJoined(meeting_url=call.meeting_url, already_joined=False)


@router.post("/{id}/leave", response_model=InfoMessage)
def leave_video_call(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    participant = _active_participant(session, id, current_user.id)
    if participant:
        participant.is_active = False
        participant.left_at = get_datetime_utc()
        session.add(participant)
        call = session.get(VideoCall, id)
        if call:
            call.current_participants = max(0, call.current_participants - 1)
            session.add(call)
        session.commit()
    return InfoMessage(message="Left call successfully")


@router.post("/{id}/end", response_model=InfoMessage)
def end_video_call(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    call = session.get(VideoCall, id)
    if not call or call.host_user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Unauthorized to end this call")

    call.is_active = False
    call.current_participants = 0
    session.add(call)

    now = get_datetime_utc()
    statement = select(VideoCallParticipant).where(
        VideoCallParticipant.call_id == id,
        VideoCallParticipant.is_active == True,  # noqa: E712
    )
    for participant in session.exec(statement).all():
        participant.is_active = False
        participant.left_at = now
        session.add(participant)
    session.commit()
    logger.info("Video call %s ended by host", id)
    return InfoMessage(message="Call ended successfully")


@router.get("/{id}/participants", response_model=list[VideoCallParticipantPublic])
def read_call_participants(id: uuid.UUID, session: SessionDep) -> Any:
    statement = select(VideoCallParticipant).where(
        VideoCallParticipant.call_id == id,
        VideoCallParticipant.is_active == True,  # noqa: E712
    )
    storage = get_storage()
    participants = []
    for participant in session.exec(statement).all():
        name, profile, _ = crud.author_details(
            session=session, user_id=participant.user_id, use_full_name=False
        )
        participants.append(
            VideoCallParticipantPublic.model_validate(
                participant,
                update={
                    "name": name,
                    "profile_image_url": storage.get_url(
                        session=session, storage_id=profile.profile_image
                    )
                    if profile
                    else None,
                },
            )
        )
    return participants
