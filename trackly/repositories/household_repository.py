from sqlalchemy.orm import Session
from trackly.models.household import Household, HouseholdMember, HouseholdRole
from trackly.repositories.repository import BaseRepository


class HouseholdRepository(BaseRepository[Household]):
    """Repository for household operations."""

    def __init__(self, db: Session):
        super().__init__(Household, db)

    def create_with_owner(self, name: str, owner_user_id: str) -> Household:
        """Insert the household and its owner membership in one transaction."""
        household = Household(name=name, owner_user_id=owner_user_id)
        self.db.add(household)
        self.db.flush()
        self.db.add(
            HouseholdMember(
                household_id=household.id,
                user_id=owner_user_id,
                role=HouseholdRole.OWNER,
            )
        )
        self.db.commit()
        self.db.refresh(household)
        return household
