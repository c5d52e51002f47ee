from sqlalchemy.orm import Session
from sqlalchemy import select, update, func
from typing import List, Optional
from trackly.models.household import HouseholdMember, HouseholdRole, MANAGER_ROLES
from trackly.models.profile import Profile
from trackly.repositories.repository import BaseRepository


class MembershipRepository(BaseRepository[HouseholdMember]):
    """Repository for household membership rows."""

    def __init__(self, db: Session):
        super().__init__(HouseholdMember, db)

    def get_membership(self, household_id: str, user_id: str) -> Optional[HouseholdMember]:
        return self.get((household_id, user_id))

    def get_role(self, household_id: str, user_id: str) -> Optional[HouseholdRole]:
        """Get the role of a user in a household."""
        stmt = select(HouseholdMember.role).where(
            HouseholdMember.household_id == household_id,
            HouseholdMember.user_id == user_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_any_membership(self, user_id: str) -> Optional[HouseholdMember]:
        """First membership of a user in any household."""
        stmt = (
            select(HouseholdMember)
            .where(HouseholdMember.user_id == user_id)
            .order_by(HouseholdMember.joined_at)
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()

    def upsert_member(self, household_id: str, user_id: str) -> None:
        """
        Add the user as a plain member unless the pair already exists.

        An existing row is left untouched, so retries never duplicate the
        membership and never demote an owner or admin.
        """
        insert = self._dialect_insert()
        if insert is None:
            if self.get_membership(household_id, user_id) is None:
                self.db.add(
                    HouseholdMember(
                        household_id=household_id,
                        user_id=user_id,
                        role=HouseholdRole.MEMBER,
                    )
                )
        else:
            stmt = (
                insert(HouseholdMember)
                .values(
                    household_id=household_id,
                    user_id=user_id,
                    role=HouseholdRole.MEMBER,
                )
                .on_conflict_do_nothing(index_elements=["household_id", "user_id"])
            )
            self.db.execute(stmt)
        self.db.commit()

    def count_managers(self, household_id: str, lock: bool = False) -> int:
        """
        Number of owner/admin rows in a household.

        With ``lock`` the rows are read FOR UPDATE so concurrent demotions in the
        same household queue behind this transaction.
        """
        if lock:
            stmt = (
                select(HouseholdMember.user_id)
                .where(
                    HouseholdMember.household_id == household_id,
                    HouseholdMember.role.in_(sorted(MANAGER_ROLES)),
                )
                .with_for_update()
            )
            return len(self.db.execute(stmt).all())

        stmt = select(func.count()).select_from(HouseholdMember).where(
            HouseholdMember.household_id == household_id,
            HouseholdMember.role.in_(sorted(MANAGER_ROLES)),
        )
        return self.db.execute(stmt).scalar_one()

    def update_role(self, household_id: str, user_id: str, role: HouseholdRole) -> bool:
        """Set a member's role. Returns False when no row matched."""
        stmt = (
            update(HouseholdMember)
            .where(
                HouseholdMember.household_id == household_id,
                HouseholdMember.user_id == user_id,
            )
            .values(role=role)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount > 0

    def list_members(self, household_id: str) -> List[dict]:
        """
        All members of a household with their roles and display names.

        Returns:
            List of dicts ordered by join time
        """
        stmt = (
            select(
                HouseholdMember.user_id,
                HouseholdMember.role,
                HouseholdMember.joined_at,
                Profile.display_name,
            )
            .outerjoin(Profile, Profile.user_id == HouseholdMember.user_id)
            .where(HouseholdMember.household_id == household_id)
            .order_by(HouseholdMember.joined_at)
        )
        return [
            {
                "user_id": r.user_id,
                "role": r.role,
                "display_name": r.display_name or "Unknown",
                "joined_at": r.joined_at,
            }
            for r in self.db.execute(stmt).all()
        ]
