import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from trackly.core.exception import (
    BadRequestException,
    GoneException,
    MissingFieldException,
    ResourceConflictException,
    ResourceNotFoundException,
)
from trackly.models.invite import Invite
from trackly.repositories.invite_repository import InviteRepository
from trackly.repositories.membership_repository import MembershipRepository
from trackly.schemas.errors import ErrorCode
from trackly.security import Caller
from trackly.services import token_codec
from trackly.services.email_service import EmailOutcome, InviteMailer
from trackly.services.household_access import require_manager
from trackly.services.profile_service import ProfileService
from trackly.utils.datetime_utils import as_utc, utc_now

logger = logging.getLogger(__name__)

# Fixed policy
INVITE_TTL = timedelta(days=7)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class CreatedInvite:
    invite_url: str
    email_outcome: EmailOutcome

    @property
    def email_sent(self) -> bool:
        return self.email_outcome.sent


def is_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def build_invite_url(site_url: str, token: str) -> str:
    return f"{site_url.rstrip('/')}/join?token={quote(token, safe='')}"


class InviteService:
    """
    Issues and redeems household invites.

    An invite is PENDING until accepted_at is set (ACCEPTED, terminal) or its
    expires_at passes (EXPIRED, computed on read and never stored).
    """

    def __init__(
        self,
        db: Session,
        mailer: Optional[InviteMailer] = None,
        site_url: str = "",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.mailer = mailer
        self.site_url = site_url
        self.clock = clock
        self.invite_repo = InviteRepository(db)
        self.membership_repo = MembershipRepository(db)
        self.profile_service = ProfileService(db, clock=clock)

    async def create_invite(
        self, caller: Caller, household_id: Optional[str], email: Optional[str]
    ) -> CreatedInvite:
        """
        Create an invite and try to email its join link.

        Retrying creates a second, independent invite.

        Raises:
            MissingFieldException: household_id or email blank
            BadRequestException: INVALID_EMAIL
            AuthorizationException: NOT_HOUSEHOLD_MEMBER / NOT_ADMIN
        """
        household_id = (household_id or "").strip()
        email = (email or "").strip().lower()

        if not household_id:
            raise MissingFieldException("household_id")
        if not email:
            raise MissingFieldException("email")
        if not is_email(email):
            raise BadRequestException("Invalid email", code=ErrorCode.INVALID_EMAIL)

        require_manager(
            self.membership_repo,
            household_id,
            caller.id,
            "Only admins can create invites",
        )

        token = token_codec.generate_token()
        invite = Invite(
            household_id=household_id,
            email=email,
            token_hash=token_codec.hash_token(token),
            expires_at=self.clock() + INVITE_TTL,
            invited_by_user_id=caller.id,
        )
        self.invite_repo.create(invite)

        invite_url = build_invite_url(self.site_url, token)

        if self.mailer is not None:
            outcome = await self.mailer.send_invite(email, invite_url)
        else:
            outcome = EmailOutcome.not_sent("not_configured")

        logger.info(
            "Invite %s created for household %s (email_sent=%s)",
            invite.id, household_id, outcome.sent,
        )
        return CreatedInvite(invite_url=invite_url, email_outcome=outcome)

    def accept_invite(self, caller: Caller, token: Optional[str]) -> str:
        """
        Redeem an invite token for the caller.

        The membership upsert is committed before accepted_at is stamped. If the
        stamp fails the invite stays PENDING and a retry is safe because the
        upsert never duplicates the membership.

        Returns:
            The household id joined
        """
        token = (token or "").strip()
        if not token:
            raise MissingFieldException("token")

        invite = self.invite_repo.get_by_token_hash(token_codec.hash_token(token))
        if invite is None:
            raise ResourceNotFoundException("Invite not found", code=ErrorCode.INVITE_NOT_FOUND)

        if invite.accepted_at is not None:
            raise ResourceConflictException(
                "Invite already accepted", code=ErrorCode.INVITE_ALREADY_USED
            )

        now = self.clock()
        if as_utc(invite.expires_at) < now:
            raise GoneException("Invite expired")

        household_id = invite.household_id
        self.membership_repo.upsert_member(household_id, caller.id)

        # Conditional on accepted_at IS NULL; losing means a concurrent request won.
        if not self.invite_repo.mark_accepted(invite.id, now):
            raise ResourceConflictException(
                "Invite already accepted", code=ErrorCode.INVITE_ALREADY_USED
            )

        self.profile_service.mark_in_household(caller.id)

        logger.info("Invite %s accepted into household %s by %s", invite.id, household_id, caller.id)
        return household_id

    def list_pending_invites(self, caller: Caller, household_id: str) -> List[Invite]:
        household_id = household_id.strip()
        if not household_id:
            raise MissingFieldException("household_id")

        require_manager(
            self.membership_repo,
            household_id,
            caller.id,
            "Only admins can view invites",
        )
        return self.invite_repo.list_pending(household_id, self.clock())
