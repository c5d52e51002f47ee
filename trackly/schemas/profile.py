from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ProfileUpsert(BaseModel):
    """Body of POST /profile, sent by the client after every login."""
    model_config = ConfigDict(extra="forbid")

    timezone: Optional[str] = Field(None, max_length=64, description="IANA timezone name")


class ProfileResponse(BaseModel):
    user_id: str
    display_name: str
    timezone: str
    onboarding_status: str

    model_config = ConfigDict(from_attributes=True)
