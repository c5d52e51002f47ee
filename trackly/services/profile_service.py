import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from trackly.models.profile import OnboardingStatus, Profile
from trackly.repositories.profile_repository import ProfileRepository
from trackly.security import Caller
from trackly.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


def display_name_for(caller: Caller) -> str:
    """Best available human name from the identity claims."""
    md = caller.metadata or {}
    for key in ("full_name", "name", "preferred_username"):
        value = md.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()[:100]
    if caller.email and "@" in caller.email:
        local = caller.email.split("@", 1)[0]
        if local:
            return local[:100]
    return "User"


class ProfileService:
    """Service layer for user profiles."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.profile_repo = ProfileRepository(db)

    def upsert_on_login(self, caller: Caller, timezone: Optional[str] = None) -> Profile:
        """
        Create or refresh the caller's profile after a login.

        A new profile starts in onboarding status 'new'; an existing one keeps
        its status so a returning household member is not sent back to setup.
        """
        tz = (timezone or "").strip() or "UTC"
        profile = self.profile_repo.get_by_user_id(caller.id)
        if profile is None:
            profile = Profile(
                user_id=caller.id,
                display_name=display_name_for(caller),
                timezone=tz,
                last_login_at=self.clock(),
                onboarding_status=OnboardingStatus.NEW,
            )
            return self.profile_repo.create(profile)

        return self.profile_repo.update(
            caller.id,
            {
                "display_name": display_name_for(caller),
                "timezone": tz,
                "last_login_at": self.clock(),
            },
        )

    def mark_in_household(self, user_id: str) -> None:
        if not self.profile_repo.set_onboarding_status(user_id, OnboardingStatus.IN_HOUSEHOLD):
            logger.debug("No profile for %s; onboarding status left to the login upsert", user_id)
