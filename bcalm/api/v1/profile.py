# bcalm/api/v1/profile.py
from fastapi import APIRouter, Depends

from bcalm.api.deps import get_current_user, get_profile_service
from bcalm.models.profile import Profile, ProfileOut, ProfileUpdate
from bcalm.services.auth import CurrentUser
from bcalm.services.profile import ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])

def _out(profile: Profile) -> ProfileOut:
    return ProfileOut.model_validate(profile)

@router.get("/me", response_model=ProfileOut, response_model_by_alias=True)
async def get_my_profile(user: CurrentUser = Depends(get_current_user), svc: ProfileService = Depends(get_profile_service)):
    return _out(await svc.ensure_profile(user))

@router.patch("", response_model=ProfileOut, response_model_by_alias=True)
async def update_my_profile(
    payload: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    svc: ProfileService = Depends(get_profile_service),
):
    await svc.ensure_profile(user)
    return _out(await svc.update_profile(user.id, payload))

@router.post("/complete-onboarding", response_model=ProfileOut, response_model_by_alias=True)
async def complete_onboarding(user: CurrentUser = Depends(get_current_user), svc: ProfileService = Depends(get_profile_service)):
    await svc.ensure_profile(user)
    return _out(await svc.complete_onboarding(user.id))
