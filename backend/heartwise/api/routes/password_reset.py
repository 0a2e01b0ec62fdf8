import logging
import secrets
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlmodel import Session, select

from heartwise import crud
from heartwise.api.deps import OptionalUser, SessionDep
from heartwise.core.config import settings
from heartwise.models import (
    NewPassword,
    PasswordResetDone,
    PasswordResetRequest,
    PasswordResetRequested,
    PasswordResetToken,
    PasswordResetTokenPublic,
    PasswordResetValidation,
    User,
    get_datetime_utc,
)

router = APIRouter(prefix="/password-reset", tags=["password-reset"])
logger = logging.getLogger(__name__)


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def reset_url_for(token: str) -> str:
    return f"{settings.FRONTEND_HOST.rstrip('/')}/reset-password?token={token}"


def get_active_token(session: Session, token: str) -> PasswordResetToken | None:
    # expiry is compared in SQL; SQLite hands back naive datetimes
    statement = select(PasswordResetToken).where(
        PasswordResetToken.token == token,
        PasswordResetToken.is_used == False,  # noqa: E712
        PasswordResetToken.expires_at > get_datetime_utc(),
    )
    return session.exec(statement).first()


@router.post("/request", response_model=PasswordResetRequested)
def request_password_reset(session: SessionDep, body: PasswordResetRequest) -> Any:
    user = crud.get_user_by_email(session=session, email=body.email)
    if not user:
        # Same answer whether or not the email is registered
        return PasswordResetRequested(
            message="If the email exists, a reset link has been sent."
        )

    statement = select(PasswordResetToken).where(
        PasswordResetToken.user_id == user.id,
        PasswordResetToken.is_used == False,  # noqa: E712
        PasswordResetToken.expires_at > get_datetime_utc(),
    )
    existing = session.exec(statement).first()
    if existing:
        return PasswordResetRequested(
            message="A password reset link has already been sent. Please check your email.",
            token=existing.token,
            reset_url=reset_url_for(existing.token),
        )

    reset_token = PasswordResetToken(
        user_id=user.id,
        token=generate_reset_token(),
        expires_at=get_datetime_utc()
        + timedelta(hours=settings.PASSWORD_RESET_TOKEN_EXPIRE_HOURS),
    )
    session.add(reset_token)
    session.commit()
    session.refresh(reset_token)
    logger.info("Password reset requested for user %s", user.id)
    return PasswordResetRequested(
        message="Password reset link has been sent to your email.",
        token=reset_token.token,
        reset_url=reset_url_for(reset_token.token),
    )


@router.get("/validate", response_model=PasswordResetValidation)
def validate_reset_token(session: SessionDep, token: str) -> Any:
    reset_token = get_active_token(session, token)
    if not reset_token:
        return PasswordResetValidation(valid=False, message="Invalid or expired reset token.")
    user = session.get(User, reset_token.user_id)
    if not user:
        return PasswordResetValidation(valid=False, message="User not found.")
    return PasswordResetValidation(valid=True, user_id=user.id, email=user.email)


@router.post("/reset", response_model=PasswordResetDone)
def reset_password(session: SessionDep, body: NewPassword) -> Any:
    reset_token = get_active_token(session, body.token)
    if not reset_token:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    user = session.get(User, reset_token.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    reset_token.is_used = True
    session.add(reset_token)
    crud.update_user_password(session=session, db_user=user, new_password=body.new_password)
    logger.info("Password reset completed for user %s", user.id)
    return PasswordResetDone(
        message="Password has been reset successfully. You can now sign in with your new password.",
        user_id=user.id,
    )


@router.get("/tokens", response_model=list[PasswordResetTokenPublic])
def read_my_reset_tokens(session: SessionDep, current_user: OptionalUser) -> Any:
    if current_user is None:
        return []
    statement = select(PasswordResetToken).where(
        PasswordResetToken.user_id == current_user.id,
        PasswordResetToken.is_used == False,  # noqa: E712
    )
    return session.exec(statement).all()
