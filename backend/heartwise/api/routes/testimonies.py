import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlmodel import Session, col, func, select

from heartwise import crud
from heartwise.api.deps import CurrentAdmin, CurrentUser, SessionDep
from heartwise.models import (
    InfoMessage,
    NotificationPriority,
    NotificationType,
    Testimony,
    TestimonyCategory,
    TestimonyCreate,
    TestimonyPublic,
    TestimonyStats,
)

router = APIRouter(prefix="/testimonies", tags=["testimonies"])
logger = logging.getLogger(__name__)

PUBLIC_LIMIT = 10


def _to_public(session: Session, testimony: Testimony) -> TestimonyPublic:
    if testimony.is_anonymous:
        author_name = "Anonymous"
    else:
        author_name, _, _ = crud.author_details(
            session=session,
            user_id=testimony.user_id,
            use_full_name=False,
            default="A Believer",
        )
    return TestimonyPublic.model_validate(testimony, update={"author_name": author_name})


def _get_testimony_or_404(session: Session, testimony_id: uuid.UUID) -> Testimony:
    testimony = session.get(Testimony, testimony_id)
    if not testimony:
        raise HTTPException(status_code=404, detail="Testimony not found")
    return testimony


@router.get("/", response_model=list[TestimonyPublic])
def read_approved_testimonies(session: SessionDep, category: str | None = None) -> Any:
    """
    Public listing; testimonies stay hidden until an admin approves them.
    """
    statement = select(Testimony).where(Testimony.is_approved == True)  # noqa: E712
    if category and category != "all":
        try:
            statement = statement.where(Testimony.category == TestimonyCategory(category))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown category: {category}")
    statement = statement.order_by(col(Testimony.created_at).desc()).limit(PUBLIC_LIMIT)
    return [_to_public(session, t) for t in session.exec(statement).all()]


@router.post("/", response_model=TestimonyPublic)
def submit_testimony(
    *, session: SessionDep, current_user: CurrentUser, testimony_in: TestimonyCreate
) -> Any:
    testimony = Testimony.model_validate(
        testimony_in, update={"user_id": current_user.id, "is_approved": False}
    )
    session.add(testimony)
    session.commit()
    session.refresh(testimony)

    crud.create_admin_notification(
        session=session,
        type=NotificationType.new_testimony,
        title="New Testimony Submitted",
        description=f'New testimony: "{testimony.title}" - Requires approval',
        related_id=testimony.id,
        priority=NotificationPriority.high,
    )
    return _to_public(session, testimony)


@router.get("/pending", response_model=list[TestimonyPublic])
def read_pending_testimonies(session: SessionDep, current_user: CurrentAdmin) -> Any:
    statement = (
        select(Testimony)
        .where(Testimony.is_approved == False)  # noqa: E712
        .order_by(col(Testimony.created_at).desc())
    )
    return [_to_public(session, t) for t in session.exec(statement).all()]


@router.get("/stats", response_model=TestimonyStats)
def read_testimony_stats(session: SessionDep, current_user: CurrentAdmin) -> Any:
    total = session.exec(select(func.count()).select_from(Testimony)).one()
    approved = session.exec(
        select(func.count()).select_from(Testimony).where(Testimony.is_approved == True)  # noqa: E712
    ).one()
    return TestimonyStats(total=total, approved=approved, pending=total - approved)


@router.post("/{id}/approve", response_model=TestimonyPublic)
def approve_testimony(id: uuid.UUID, session: SessionDep, current_user: CurrentAdmin) -> Any:
    testimony = _get_testimony_or_404(session, id)
    testimony.is_approved = True
    session.add(testimony)
    session.commit()
    session.refresh(testimony)
    logger.info("Testimony %s approved by %s", id, current_user.email)
    return _to_public(session, testimony)


@router.delete("/{id}", response_model=InfoMessage)
def reject_testimony(id: uuid.UUID, session: SessionDep, current_user: CurrentAdmin) -> Any:
    testimony = _get_testimony_or_404(session, id)
    session.delete(testimony)
    session.commit()
    logger.info("Testimony %s rejected by %s", id, current_user.email)
    return InfoMessage(message="Testimony rejected")
