from typing import Any

from fastapi import APIRouter, HTTPException
from sqlmodel import Session

from heartwise import crud
from heartwise.api.deps import CurrentUser, OptionalUser, SessionDep
from heartwise.models import Profile, ProfilePublic, ProfileUpdate, StoredFile
from heartwise.storage import get_storage

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _to_public(session: Session, profile: Profile) -> ProfilePublic:
    return ProfilePublic.model_validate(
        profile,
        update={
            "profile_image_url": get_storage().get_url(
                session=session, storage_id=profile.profile_image
            )
        },
    )


@router.get("/me", response_model=ProfilePublic | None)
def read_profile_me(session: SessionDep, current_user: OptionalUser) -> Any:
    if current_user is None:
        return None
    profile = crud.get_profile_by_user(session=session, user_id=current_user.id)
    return _to_public(session, profile) if profile else None


@router.put("/me", response_model=ProfilePublic)
def upsert_profile_me(
    *, session: SessionDep, current_user: CurrentUser, profile_in: ProfileUpdate
) -> Any:
    """
    Create the caller's profile, or replace its fields if it already exists.
    """
    if profile_in.profile_image is not None:
        image = session.get(StoredFile, profile_in.profile_image)
        if not image or image.owner_id != current_user.id:
            raise HTTPException(status_code=400, detail="Unknown profile image")

    profile = crud.get_profile_by_user(session=session, user_id=current_user.id)
    if profile:
        profile_data = profile_in.model_dump()
        if "profile_image" not in profile_in.model_fields_set:
            profile_data.pop("profile_image")
        profile.sqlmodel_update(profile_data)
    else:
        profile = Profile.model_validate(profile_in, update={"user_id": current_user.id})
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return _to_public(session, profile)
