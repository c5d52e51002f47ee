from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from trackly.database import get_db
from trackly.dependencies import get_current_user
from trackly.security import Caller
from trackly.schemas.household import (
    HouseholdCreate,
    HouseholdCreatedResponse,
    HouseholdContextResponse,
    HouseholdMemberResponse,
    HouseholdMembersResponse,
)
from trackly.services.household_service import HouseholdService

router = APIRouter()


@router.post("/create-household", response_model=HouseholdCreatedResponse)
async def create_household(
    household_data: HouseholdCreate,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new household with the current user as owner."""
    service = HouseholdService(db)
    household = service.create_household(current_user, household_data.name)
    return HouseholdCreatedResponse(household_id=household.id)


@router.get("/household", response_model=HouseholdContextResponse)
async def get_my_household(
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the current user's household and role."""
    service = HouseholdService(db)
    return HouseholdContextResponse(**service.get_household_for_user(current_user))


@router.get("/household/members", response_model=HouseholdMembersResponse)
async def get_members(
    household_id: str = Query(...),
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all household members with display names."""
    service = HouseholdService(db)
    members = service.list_members(current_user, household_id)
    return HouseholdMembersResponse(
        members=[
            HouseholdMemberResponse(
                user_id=m["user_id"],
                role=m["role"].value,
                display_name=m["display_name"],
                joined_at=m["joined_at"],
            )
            for m in members
        ]
    )
