from typing import Any

from fastapi import APIRouter, HTTPException

from heartwise import crud
from heartwise.api.deps import CurrentUser, SessionDep
from heartwise.models import UserCreate, UserPublic, UserRegister

router = APIRouter(prefix="/users", tags=["users"])


def _to_public(user) -> UserPublic:
    return UserPublic.model_validate(user, update={"is_admin": crud.is_admin(user)})


@router.post("/signup", response_model=UserPublic)
def register_user(session: SessionDep, user_in: UserRegister) -> Any:
    """
    Create new user without the need to be logged in.
    """
    user = crud.get_user_by_email(session=session, email=user_in.email)
    if user:
        raise HTTPException(
            status_code=400,
            detail="The user with this email already exists in the system",
        )
    user_create = UserCreate.model_validate(user_in)
    user = crud.create_user(session=session, user_create=user_create)
    return _to_public(user)


@router.get("/me", response_model=UserPublic)
def read_user_me(current_user: CurrentUser) -> Any:
    """
    Get current user.
    """
    return _to_public(current_user)
