from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class HouseholdCreate(BaseModel):
    """Body of POST /create-household."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, description="Household name (max 80 characters)")


class HouseholdCreatedResponse(BaseModel):
    household_id: str


class HouseholdContextResponse(BaseModel):
    """The caller's household and their role in it."""
    household_id: str
    household_name: str
    role: str = Field(..., description="Caller role: 'owner', 'admin' or 'member'")
    owner_user_id: str


class HouseholdMemberResponse(BaseModel):
    user_id: str
    role: str
    display_name: str
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HouseholdMembersResponse(BaseModel):
    members: List[HouseholdMemberResponse]
