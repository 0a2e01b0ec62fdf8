import logging
import uuid
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlmodel import Session, col, func, select

from heartwise import crud
from heartwise.api.deps import CurrentAdmin, SessionDep
from heartwise.api.routes.posts import comment_count, resolve_post_image
from heartwise.models import (
    AdminNotification,
    AdminNotificationPublic,
    AdminStats,
    Comment,
    Conversation,
    InfoMessage,
    Message,
    Post,
    PostAdminView,
    Reaction,
    User,
    get_datetime_utc,
)

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=7)


def _count(session: Session, model: Any, *criteria: Any) -> int:
    statement = select(func.count()).select_from(model)
    if criteria:
        statement = statement.where(*criteria)
    return session.exec(statement).one()


@router.get("/stats", response_model=AdminStats)
def read_admin_stats(session: SessionDep, current_user: CurrentAdmin) -> Any:
    since = get_datetime_utc() - RECENT_WINDOW
    return AdminStats(
        total_users=_count(session, User),
        total_posts=_count(session, Post),
        total_comments=_count(session, Comment),
        total_reactions=_count(session, Reaction),
        total_messages=_count(session, Message),
        total_conversations=_count(session, Conversation),
        unread_notifications=_count(
            session, AdminNotification, AdminNotification.is_read == False  # noqa: E712
        ),
        recent_posts=_count(session, Post, col(Post.created_at) >= since),
        recent_comments=_count(session, Comment, col(Comment.created_at) >= since),
    )


@router.get("/notifications", response_model=list[AdminNotificationPublic])
def read_notifications(
    session: SessionDep, current_user: CurrentAdmin, limit: int = 50
) -> Any:
    statement = (
        select(AdminNotification)
        .order_by(col(AdminNotification.created_at).desc())
        .limit(limit)
    )
    return session.exec(statement).all()


@router.post("/notifications/read-all", response_model=InfoMessage)
def mark_all_notifications_read(session: SessionDep, current_user: CurrentAdmin) -> Any:
    statement = select(AdminNotification).where(AdminNotification.is_read == False)  # noqa: E712
    unread = session.exec(statement).all()
    for notification in unread:
        notification.is_read = True
        session.add(notification)
    session.commit()
    logger.info("%s notifications marked read by %s", len(unread), current_user.email)
    return InfoMessage(message="All notifications marked as read")


@router.post("/notifications/{id}/read", response_model=AdminNotificationPublic)
def mark_notification_read(
    id: uuid.UUID, session: SessionDep, current_user: CurrentAdmin
) -> Any:
    notification = session.get(AdminNotification, id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    notification.is_read = True
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification


@router.get("/posts", response_model=list[PostAdminView])
def read_all_posts(session: SessionDep, current_user: CurrentAdmin) -> Any:
    statement = select(Post).order_by(col(Post.created_at).desc())
    posts = []
    for post in session.exec(statement).all():
        name, _, user = crud.author_details(session=session, user_id=post.user_id)
        posts.append(
            PostAdminView.model_validate(
                post,
                update={
                    "image_url": resolve_post_image(session, post),
                    "author_name": name,
                    "author_email": user.email if user else None,
                    "comment_count": comment_count(session, post.id),
                },
            )
        )
    return posts
