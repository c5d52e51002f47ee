from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class RoleChangeRequest(BaseModel):
    """Body of POST /manage-roles."""
    model_config = ConfigDict(extra="forbid")

    household_id: Optional[str] = None
    target_user_id: Optional[str] = None
    new_role: Optional[str] = Field(None, description="'admin' or 'member'")


class RoleChangeResponse(BaseModel):
    success: bool = True
    new_role: str
