# bcalm/services/profile.py
import logging

from bcalm.core.errors import NotFound
from bcalm.models.profile import ONBOARDING_COMPLETE, Profile, ProfileUpdate
from bcalm.repositories.base import Repositories
from bcalm.services.auth import CurrentUser

logger = logging.getLogger(__name__)

PERSONALIZATION_FULL = "full"
PERSONALIZATION_PARTIAL = "partial"


class ProfileService:
    """Onboarding state that gates CV analysis and feeds the worker's meta."""

    def __init__(self, repos: Repositories):
        self.repos = repos

    async def ensure_profile(self, user: CurrentUser) -> Profile:
        profile = await self.repos.profiles.get(user.id)
        if profile is not None:
            return profile
        profile = await self.repos.profiles.create(
            user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
        )
        logger.info("Created profile for user %s", user.id)
        return profile

    async def update_profile(self, user_id: str, changes: ProfileUpdate) -> Profile:
        fields = changes.model_dump(exclude_unset=True)
        profile = await self.repos.profiles.update(user_id, **fields)
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    async def complete_onboarding(self, user_id: str) -> Profile:
        profile = await self.repos.profiles.get(user_id)
        if profile is None:
            raise NotFound("Profile not found")
        quality = PERSONALIZATION_FULL if profile.target_role and profile.years_experience is not None else PERSONALIZATION_PARTIAL
        updated = await self.repos.profiles.update(
            user_id,
            onboarding_status=ONBOARDING_COMPLETE,
            personalization_quality=quality,
        )
        logger.info("User %s completed onboarding (%s)", user_id, quality)
        return updated
