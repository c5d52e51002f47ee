"""Membership checks shared by the household-scoped services."""

from trackly.core.exception import AuthorizationException
from trackly.models.household import HouseholdRole, MANAGER_ROLES
from trackly.repositories.membership_repository import MembershipRepository
from trackly.schemas.errors import ErrorCode


def require_member(
    membership_repo: MembershipRepository, household_id: str, user_id: str
) -> HouseholdRole:
    """Return the user's role, or raise NOT_HOUSEHOLD_MEMBER."""
    role = membership_repo.get_role(household_id, user_id)
    if role is None:
        raise AuthorizationException(
            "Not a household member", code=ErrorCode.NOT_HOUSEHOLD_MEMBER
        )
    return role


def require_manager(
    membership_repo: MembershipRepository,
    household_id: str,
    user_id: str,
    message: str = "Only admins can perform this action",
) -> HouseholdRole:
    """Return the user's role if it is owner or admin, otherwise raise NOT_ADMIN."""
    role = require_member(membership_repo, household_id, user_id)
    if role not in MANAGER_ROLES:
        raise AuthorizationException(message, code=ErrorCode.NOT_ADMIN)
    return role
