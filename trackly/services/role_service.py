import logging
from typing import Optional

from sqlalchemy.orm import Session

from trackly.core.exception import (
    AuthorizationException,
    BadRequestException,
    MissingFieldException,
    ResourceConflictException,
    ResourceNotFoundException,
)
from trackly.models.household import ASSIGNABLE_ROLES, MANAGER_ROLES, HouseholdRole
from trackly.repositories.membership_repository import MembershipRepository
from trackly.schemas.errors import ErrorCode
from trackly.security import Caller
from trackly.services.household_access import require_manager

logger = logging.getLogger(__name__)


def parse_assignable_role(value: str) -> HouseholdRole:
    """Map request input to a role the endpoint may assign."""
    try:
        role = HouseholdRole(value.strip().lower())
    except ValueError:
        role = None
    if role not in ASSIGNABLE_ROLES:
        raise BadRequestException(
            "Invalid role. Must be admin or member", code=ErrorCode.INVALID_ROLE
        )
    return role


class RoleService:
    """Service layer for promoting and demoting household members."""

    def __init__(self, db: Session):
        self.db = db
        self.membership_repo = MembershipRepository(db)

    def change_role(
        self,
        caller: Caller,
        household_id: Optional[str],
        target_user_id: Optional[str],
        new_role: Optional[str],
    ) -> HouseholdRole:
        """
        Change a member's role to admin or member.

        Rules, in order:
            - caller must be owner or admin of the household
            - target must be a member of the household
            - the owner's role never changes
            - demoting the last owner/admin is refused

        Returns:
            The role now held by the target

        Raises:
            MissingFieldException, BadRequestException (INVALID_ROLE),
            AuthorizationException (NOT_HOUSEHOLD_MEMBER, NOT_ADMIN, CANNOT_CHANGE_OWNER),
            ResourceNotFoundException (USER_NOT_FOUND),
            ResourceConflictException (LAST_ADMIN)
        """
        household_id = (household_id or "").strip()
        target_user_id = (target_user_id or "").strip()
        new_role = (new_role or "").strip()

        if not household_id:
            raise MissingFieldException("household_id")
        if not target_user_id:
            raise MissingFieldException("target_user_id")
        if not new_role:
            raise MissingFieldException("new_role")
        role = parse_assignable_role(new_role)

        require_manager(
            self.membership_repo,
            household_id,
            caller.id,
            "Only admins can manage roles",
        )

        target_role = self.membership_repo.get_role(household_id, target_user_id)
        if target_role is None:
            raise ResourceNotFoundException(
                "Target user not found in household", code=ErrorCode.USER_NOT_FOUND
            )

        if target_role == HouseholdRole.OWNER:
            raise AuthorizationException(
                "The household owner's role cannot be changed",
                code=ErrorCode.CANNOT_CHANGE_OWNER,
            )

        if target_role in MANAGER_ROLES and role not in MANAGER_ROLES:
            # The manager rows are locked until commit, so two demotions in the
            # same household cannot both observe a count of two.
            managers = self.membership_repo.count_managers(household_id, lock=True)
            if managers <= 1:
                self.db.rollback()
                raise ResourceConflictException(
                    "Cannot remove last admin from household", code=ErrorCode.LAST_ADMIN
                )

        if not self.membership_repo.update_role(household_id, target_user_id, role):
            raise ResourceNotFoundException(
                "Target user not found in household", code=ErrorCode.USER_NOT_FOUND
            )

        logger.info(
            "Role of %s in household %s changed from %s to %s by %s",
            target_user_id, household_id, target_role.value, role.value, caller.id,
        )
        return role
