from sqlalchemy.orm import Session
from sqlalchemy import update
from typing import Optional
from trackly.models.profile import Profile, OnboardingStatus
from trackly.repositories.repository import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Repository for user profiles."""

    def __init__(self, db: Session):
        super().__init__(Profile, db)

    def get_by_user_id(self, user_id: str) -> Optional[Profile]:
        return self.get(user_id)

    def set_onboarding_status(self, user_id: str, status: OnboardingStatus) -> bool:
        """Update-only; returns False when the user has no profile yet."""
        stmt = (
            update(Profile)
            .where(Profile.user_id == user_id)
            .values(onboarding_status=status)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount > 0
