# bcalm/models/profile.py
from typing import Optional
from datetime import datetime

from bcalm.models.base import CamelModel

ONBOARDING_PENDING = "pending"
ONBOARDING_COMPLETE = "complete"

class Profile(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    current_status: Optional[str] = None
    target_role: Optional[str] = None
    years_experience: Optional[int] = None
    onboarding_status: str = ONBOARDING_PENDING
    personalization_quality: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def onboarding_completed(self) -> bool:
        return self.onboarding_status == ONBOARDING_COMPLETE

    @property
    def full_name(self) -> Optional[str]:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or None

class ProfileUpdate(CamelModel):
    # only fields present in the request body are applied (exclude_unset)
    current_status: Optional[str] = None
    target_role: Optional[str] = None
    years_experience: Optional[int] = None

class ProfileOut(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    current_status: Optional[str] = None
    target_role: Optional[str] = None
    years_experience: Optional[int] = None
    onboarding_completed: bool = False
    onboarding_status: str = ONBOARDING_PENDING
    personalization_quality: Optional[str] = None
