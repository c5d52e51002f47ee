from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class InviteCreate(BaseModel):
    """Body of POST /create-invite. Absent, null and blank fields are all reported as missing."""
    model_config = ConfigDict(extra="forbid")

    household_id: Optional[str] = Field(None, description="Household to invite into")
    email: Optional[str] = Field(None, description="Invitee email address")


class InviteCreatedResponse(BaseModel):
    invite_url: str
    email_sent: bool


class InviteAccept(BaseModel):
    """Body of POST /accept-invite."""
    model_config = ConfigDict(extra="forbid")

    token: Optional[str] = Field(None, description="Raw invite token taken from the join link")


class InviteAcceptedResponse(BaseModel):
    household_id: str


class PendingInviteResponse(BaseModel):
    """Pending invite as shown to household managers; never carries the token."""
    id: str
    email: str
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PendingInvitesResponse(BaseModel):
    invites: List[PendingInviteResponse]
