import uuid
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, select

from heartwise.core.security import get_password_hash, verify_password
from heartwise.models import (
    AdminNotification,
    NotificationPriority,
    NotificationType,
    Post,
    Profile,
    Reaction,
    ReactionType,
    User,
    UserCreate,
)


def create_user(*, session: Session, user_create: UserCreate) -> User:
    db_obj = User.model_validate(
        user_create, update={"hashed_password": get_password_hash(user_create.password)}
    )
    session.add(db_obj)
    session.commit()
    session.refresh(db_obj)
    return db_obj


def update_user_password(*, session: Session, db_user: User, new_password: str) -> User:
    db_user.hashed_password = get_password_hash(new_password)
    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return db_user


def get_user_by_email(*, session: Session, email: str) -> User | None:
    statement = select(User).where(User.email == email)
    session_user = session.exec(statement).first()
    return session_user


# Dummy hash to use for timing attack prevention when user is not found
# This is an Argon2 hash of a random password, used to ensure constant-time comparison
DUMMY_HASH = "$argon2id$v=19$m=65536,t=3,p=4$MjQyZWE1MzBjYjJlZTI0Yw$YTU4NGM5ZTZmYjE2NzZlZjY0ZWY3ZGRkY2U2OWFjNjk"


def authenticate(*, session: Session, email: str, password: str) -> User | None:
    db_user = get_user_by_email(session=session, email=email)
    if not db_user:
        # Prevent timing attacks by running password verification even when user doesn't exist
        # This ensures the response time is similar whether or not the email exists
        verify_password(password, DUMMY_HASH)
        return None
    verified, updated_password_hash = verify_password(password, db_user.hashed_password)
    if not verified:
        return None
    if updated_password_hash:
        db_user.hashed_password = updated_password_hash
        session.add(db_user)
        session.commit()
        session.refresh(db_user)
    return db_user


def is_admin(user: User | None) -> bool:
    return bool(user and user.is_active and user.is_superuser)


def get_profile_by_user(*, session: Session, user_id: uuid.UUID) -> Profile | None:
    return session.exec(select(Profile).where(Profile.user_id == user_id)).first()


def author_details(
    *,
    session: Session,
    user_id: uuid.UUID,
    use_full_name: bool = True,
    use_email: bool = True,
    default: str = "Unknown",
) -> tuple[str, Profile | None, User | None]:
    """
    Display name for a user: profile name, then (optionally) full name, then
    (optionally) email, then ``default``. Each feature area picks its own chain.
    """
    profile = get_profile_by_user(session=session, user_id=user_id)
    user = session.get(User, user_id)
    candidates = [profile.display_name if profile else None]
    if use_full_name:
        candidates.append(user.full_name if user else None)
    if use_email:
        candidates.append(user.email if user else None)
    name = next((c for c in candidates if c), default)
    return name, profile, user


def create_admin_notification(
    *,
    session: Session,
    type: NotificationType,
    title: str,
    description: str,
    related_id: Any = None,
    priority: NotificationPriority = NotificationPriority.medium,
) -> AdminNotification:
    notification = AdminNotification(
        type=type,
        title=title,
        description=description,
        related_id=str(related_id) if related_id is not None else None,
        priority=priority,
    )
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification


def get_user_reaction(
    *, session: Session, user_id: uuid.UUID, post_id: uuid.UUID
) -> Reaction | None:
    statement = select(Reaction).where(
        Reaction.user_id == user_id, Reaction.post_id == post_id
    )
    return session.exec(statement).first()


def toggle_reaction(
    *, session: Session, post: Post, user_id: uuid.UUID, reaction: ReactionType
) -> ReactionType | None:
    """
    Apply a like/dislike click and keep the post counters in step.

    Same reaction twice removes it, a different one switches it.
    Returns the caller's reaction after the toggle.
    """
    post_id = post.id
    try:
        result = _apply_reaction(
            session=session, post_id=post_id, user_id=user_id, reaction=reaction
        )
        session.commit()
    except IntegrityError:
        # a concurrent click by the same user inserted the reaction first
        session.rollback()
        result = _apply_reaction(
            session=session, post_id=post_id, user_id=user_id, reaction=reaction
        )
        session.commit()
    session.refresh(post)
    return result


def _apply_reaction(
    *, session: Session, post_id: uuid.UUID, user_id: uuid.UUID, reaction: ReactionType
) -> ReactionType | None:
    existing = get_user_reaction(session=session, user_id=user_id, post_id=post_id)

    if existing and existing.reaction == reaction:
        session.delete(existing)
        result = None
    elif existing:
        existing.reaction = reaction
        session.add(existing)
        result = reaction
    else:
        session.add(Reaction(post_id=post_id, user_id=user_id, reaction=reaction))
        result = reaction

    session.flush()
    _recount_reactions(session=session, post_id=post_id)
    return result


def _reaction_count(post_id: uuid.UUID, reaction: ReactionType) -> Any:
    return (
        select(func.count())
        .select_from(Reaction)
        .where(Reaction.post_id == post_id, Reaction.reaction == reaction)
        .scalar_subquery()
    )


def _recount_reactions(*, session: Session, post_id: uuid.UUID) -> None:
    # counters are derived from the reaction rows inside the UPDATE itself
    statement = (
        update(Post)
        .where(col(Post.id) == post_id)
        .values(
            likes=_reaction_count(post_id, ReactionType.like),
            dislikes=_reaction_count(post_id, ReactionType.dislike),
        )
    )
    session.connection().execute(statement)
