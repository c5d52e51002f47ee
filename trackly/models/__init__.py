from trackly.models.base import Base, BaseModel
from trackly.models.household import (
    Household,
    HouseholdMember,
    HouseholdRole,
    MANAGER_ROLES,
    ASSIGNABLE_ROLES,
)
from trackly.models.invite import Invite
from trackly.models.profile import Profile, OnboardingStatus
from trackly.models.task import Task, TaskStatus

__all__ = [
    # Base
    "Base",
    "BaseModel",
    # Household
    "Household",
    "HouseholdMember",
    "HouseholdRole",
    "MANAGER_ROLES",
    "ASSIGNABLE_ROLES",
    # Invite
    "Invite",
    # Profile
    "Profile",
    "OnboardingStatus",
    # Task
    "Task",
    "TaskStatus",
]
