from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trackly.database import get_db
from trackly.dependencies import get_current_user
from trackly.security import Caller
from trackly.schemas.profile import ProfileUpsert, ProfileResponse
from trackly.services.profile_service import ProfileService

router = APIRouter()


@router.post("/profile", response_model=ProfileResponse)
async def upsert_profile(
    profile_data: Optional[ProfileUpsert] = None,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create or refresh the current user's profile; called after each login."""
    service = ProfileService(db)
    profile = service.upsert_on_login(
        current_user, profile_data.timezone if profile_data else None
    )
    return ProfileResponse(
        user_id=profile.user_id,
        display_name=profile.display_name,
        timezone=profile.timezone,
        onboarding_status=profile.onboarding_status.value,
    )
