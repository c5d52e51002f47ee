import logging

from sqlalchemy.orm import Session
from typing import List, Optional
from trackly.core.exception import (
    BadRequestException,
    MissingFieldException,
    ResourceConflictException,
    ResourceNotFoundException,
)
from trackly.models.household import Household
from trackly.repositories.household_repository import HouseholdRepository
from trackly.repositories.membership_repository import MembershipRepository
from trackly.schemas.errors import ErrorCode
from trackly.security import Caller
from trackly.services.household_access import require_member
from trackly.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 80


class HouseholdService:
    """Service layer for household operations."""

    def __init__(self, db: Session):
        self.db = db
        self.household_repo = HouseholdRepository(db)
        self.membership_repo = MembershipRepository(db)
        self.profile_service = ProfileService(db)

    def create_household(self, caller: Caller, name: Optional[str]) -> Household:
        """
        Create a new household with the caller as owner.

        A user may belong to one household for now.

        Args:
            caller: Authenticated user creating the household
            name: Household name

        Returns:
            Created household

        Raises:
            MissingFieldException: If the name is blank
            BadRequestException: If the name is too long
            ResourceConflictException: If the caller already has a household
        """
        name = (name or "").strip()
        if not name:
            raise MissingFieldException("household name")
        if len(name) > MAX_NAME_LENGTH:
            raise BadRequestException(f"Household name too long (max {MAX_NAME_LENGTH})")

        if self.membership_repo.get_any_membership(caller.id) is not None:
            raise ResourceConflictException(
                "User already belongs to a household", code=ErrorCode.ALREADY_IN_HOUSEHOLD
            )

        household = self.household_repo.create_with_owner(name, caller.id)
        self.profile_service.mark_in_household(caller.id)

        logger.info("Household %s created by %s", household.id, caller.id)
        return household

    def get_household_for_user(self, caller: Caller) -> dict:
        """
        Get the caller's household and their role in it.

        Raises:
            ResourceNotFoundException: If the caller has no household yet
        """
        membership = self.membership_repo.get_any_membership(caller.id)
        if membership is None:
            raise ResourceNotFoundException("You are not in a household yet")

        household = self.household_repo.get(membership.household_id)
        if household is None:
            raise ResourceNotFoundException("Household not found")

        return {
            "household_id": household.id,
            "household_name": household.name,
            "role": membership.role.value,
            "owner_user_id": household.owner_user_id,
        }

    def list_members(self, caller: Caller, household_id: str) -> List[dict]:
        """
        Get household members with roles and display names.

        Raises:
            AuthorizationException: If the caller is not a member
        """
        household_id = household_id.strip()
        if not household_id:
            raise MissingFieldException("household_id")

        require_member(self.membership_repo, household_id, caller.id)
        return self.membership_repo.list_members(household_id)
