from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from trackly.config import settings
from trackly.database import get_db
from trackly.dependencies import get_current_user, get_mailer
from trackly.security import Caller
from trackly.schemas.invite import (
    InviteCreate,
    InviteCreatedResponse,
    InviteAccept,
    InviteAcceptedResponse,
    PendingInviteResponse,
    PendingInvitesResponse,
)
from trackly.services.email_service import InviteMailer
from trackly.services.invite_service import InviteService
from trackly.utils.datetime_utils import as_utc

router = APIRouter()


@router.post("/create-invite", response_model=InviteCreatedResponse)
async def create_invite(
    invite_data: InviteCreate,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
    mailer: InviteMailer = Depends(get_mailer),
):
    """Create an invite link for the household (owner/admin only) and email it."""
    service = InviteService(db, mailer=mailer, site_url=settings.SITE_URL)
    created = await service.create_invite(
        current_user, invite_data.household_id, invite_data.email
    )
    return InviteCreatedResponse(invite_url=created.invite_url, email_sent=created.email_sent)


@router.post("/accept-invite", response_model=InviteAcceptedResponse)
async def accept_invite(
    accept_data: InviteAccept,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Join a household by redeeming an invite token."""
    service = InviteService(db, site_url=settings.SITE_URL)
    household_id = service.accept_invite(current_user, accept_data.token)
    return InviteAcceptedResponse(household_id=household_id)


@router.get("/household/invites", response_model=PendingInvitesResponse)
async def list_pending_invites(
    household_id: str = Query(...),
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Pending invites of a household (owner/admin only)."""
    service = InviteService(db, site_url=settings.SITE_URL)
    invites = service.list_pending_invites(current_user, household_id)
    return PendingInvitesResponse(
        invites=[
            PendingInviteResponse(id=i.id, email=i.email, expires_at=as_utc(i.expires_at))
            for i in invites
        ]
    )
