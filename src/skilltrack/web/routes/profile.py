"""Own-profile endpoints."""

from fastapi import APIRouter, Depends

from skilltrack.core import accounts
from skilltrack.core.auth import CurrentUser
from skilltrack.web.deps import get_current_user
from skilltrack.web.schemas import ProfileResponse, ProfileUpdate

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(user: CurrentUser = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse.model_validate(accounts.get_own_profile(user))


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
) -> ProfileResponse:
    profile = accounts.update_own_profile(user, full_name=body.full_name, email=body.email)
    return ProfileResponse.model_validate(profile)
