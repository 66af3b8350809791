"""
TeamClock - Users API
=====================

Profile endpoints. The identity provider authenticates the caller; the
first profile submission creates the internal user record.
"""

from fastapi import APIRouter

from teamclock.api.deps import CurrentIdentity, CurrentUser, Identity
from teamclock.core.schemas import ProfileUpdate, UserResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user profile",
    responses={403: {"description": "Profile not created yet"}},
)
async def get_me(current_user: CurrentUser) -> UserResponse:
    """Return the caller's profile."""
    return UserResponse.model_validate(current_user)


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Create or update current user profile",
    responses={
        200: {"description": "Profile saved"},
        422: {"description": "Validation error"},
    },
)
async def put_me(
    data: ProfileUpdate,
    external_identity_id: CurrentIdentity,
    identity: Identity,
) -> UserResponse:
    """
    Save the caller's profile.

    Creates the user on first submission; afterwards updates name and role,
    and the avatar when one is given.
    """
    user = await identity.upsert_profile(
        external_identity_id,
        name=data.name,
        role=data.role,
        avatar_ref=data.avatar_ref,
    )
    return UserResponse.model_validate(user)
