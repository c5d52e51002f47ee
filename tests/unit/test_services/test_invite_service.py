import pytest
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse
from sqlalchemy import func, inspect, select
from sqlalchemy.orm import Session

from trackly.core.exception import (
    AuthorizationException,
    BadRequestException,
    GoneException,
    MissingFieldException,
    ResourceConflictException,
    ResourceNotFoundException,
)
from trackly.models.household import HouseholdMember, HouseholdRole
from trackly.models.invite import Invite
from trackly.models.profile import OnboardingStatus, Profile
from trackly.schemas.errors import ErrorCode
from trackly.services.email_service import EmailOutcome
from trackly.services.invite_service import INVITE_TTL, InviteService
from trackly.services.token_codec import hash_token

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class RecordingMailer:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    async def send_invite(self, to_email, invite_url):
        self.calls.append((to_email, invite_url))
        return self.outcome


def token_from(url):
    return parse_qs(urlparse(url).query)["token"][0]


def make_service(db, mailer=None, now=NOW):
    return InviteService(db, mailer=mailer, site_url="https://trackly.example/", clock=lambda: now)


def membership_count(db, household_id, user_id):
    stmt = select(func.count()).select_from(HouseholdMember).where(
        HouseholdMember.household_id == household_id,
        HouseholdMember.user_id == user_id,
    )
    return db.execute(stmt).scalar_one()


@pytest.mark.unit
class TestCreateInvite:
    """Unit tests for InviteService.create_invite."""

    @pytest.mark.asyncio
    async def test_owner_creates_invite(self, db_session: Session, household, owner):
        """Test the owner gets a join link and only the token hash is stored."""
        mailer = RecordingMailer(EmailOutcome.delivered())
        created = await make_service(db_session, mailer).create_invite(
            owner, household.id, " P@Example.com "
        )

        assert created.invite_url.startswith("https://trackly.example/join?token=")
        assert created.email_sent is True
        assert mailer.calls == [("p@example.com", created.invite_url)]

        invite = db_session.execute(select(Invite)).scalar_one()
        assert invite.email == "p@example.com"
        assert invite.household_id == household.id
        assert invite.invited_by_user_id == owner.id
        assert invite.accepted_at is None
        assert invite.token_hash == hash_token(token_from(created.invite_url))

    @pytest.mark.asyncio
    async def test_expiry_is_seven_days(self, db_session: Session, household, owner):
        """Test invites expire seven days after creation."""
        await make_service(db_session).create_invite(owner, household.id, "p@example.com")

        invite = db_session.execute(select(Invite)).scalar_one()
        expires_at = invite.expires_at.replace(tzinfo=timezone.utc)
        assert expires_at == NOW + INVITE_TTL
        assert INVITE_TTL == timedelta(days=7)

    @pytest.mark.asyncio
    async def test_raw_token_is_never_stored(self, db_session: Session, household, owner):
        """Test no invite column holds the raw token."""
        created = await make_service(db_session).create_invite(owner, household.id, "p@example.com")
        token = token_from(created.invite_url)

        columns = {c.key for c in inspect(Invite).columns}
        assert "token" not in columns
        invite = db_session.execute(select(Invite)).scalar_one()
        for column in columns:
            assert token not in str(getattr(invite, column))

    @pytest.mark.asyncio
    async def test_email_failure_does_not_fail_operation(self, db_session: Session, household, owner):
        """Test a failed email still returns the invite link."""
        mailer = RecordingMailer(EmailOutcome.not_sent("http_500"))

        created = await make_service(db_session, mailer).create_invite(
            owner, household.id, "p@example.com"
        )

        assert created.email_sent is False
        assert db_session.execute(select(func.count()).select_from(Invite)).scalar_one() == 1

    @pytest.mark.asyncio
    async def test_without_mailer_reports_not_sent(self, db_session: Session, household, owner):
        """Test email_sent is False when no mailer is wired in."""
        created = await make_service(db_session).create_invite(owner, household.id, "p@example.com")

        assert created.email_sent is False

    @pytest.mark.asyncio
    async def test_admin_can_invite(self, db_session: Session, household, add_member, partner):
        """Test admins may invite as well as the owner."""
        add_member(household.id, partner.id, HouseholdRole.ADMIN)

        created = await make_service(db_session).create_invite(partner, household.id, "x@example.com")

        assert "token=" in created.invite_url

    @pytest.mark.asyncio
    async def test_member_cannot_invite(self, db_session: Session, household, add_member, partner):
        """Test plain members are refused with NOT_ADMIN."""
        add_member(household.id, partner.id, HouseholdRole.MEMBER)

        with pytest.raises(AuthorizationException) as exc_info:
            await make_service(db_session).create_invite(partner, household.id, "x@example.com")

        assert exc_info.value.code == ErrorCode.NOT_ADMIN

    @pytest.mark.asyncio
    async def test_outsider_cannot_invite(self, db_session: Session, household, outsider):
        """Test non-members are refused with NOT_HOUSEHOLD_MEMBER."""
        with pytest.raises(AuthorizationException) as exc_info:
            await make_service(db_session).create_invite(outsider, household.id, "x@example.com")

        assert exc_info.value.code == ErrorCode.NOT_HOUSEHOLD_MEMBER

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["nope", "a@b", "a b@c.d", "@example.com"])
    async def test_invalid_email(self, db_session: Session, household, owner, email):
        """Test malformed addresses are rejected with INVALID_EMAIL."""
        with pytest.raises(BadRequestException) as exc_info:
            await make_service(db_session).create_invite(owner, household.id, email)

        assert exc_info.value.code == ErrorCode.INVALID_EMAIL

    @pytest.mark.asyncio
    async def test_missing_fields(self, db_session: Session, household, owner):
        """Test blank and null fields are reported as missing."""
        with pytest.raises(MissingFieldException):
            await make_service(db_session).create_invite(owner, "  ", "p@example.com")
        with pytest.raises(MissingFieldException):
            await make_service(db_session).create_invite(owner, household.id, "")
        with pytest.raises(MissingFieldException) as exc_info:
            await make_service(db_session).create_invite(owner, household.id, None)

        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_retry_creates_independent_invites(self, db_session: Session, household, owner):
        """Test each call issues a new token."""
        service = make_service(db_session)
        first = await service.create_invite(owner, household.id, "p@example.com")
        second = await service.create_invite(owner, household.id, "p@example.com")

        assert first.invite_url != second.invite_url
        assert db_session.execute(select(func.count()).select_from(Invite)).scalar_one() == 2


@pytest.mark.unit
class TestAcceptInvite:
    """Unit tests for InviteService.accept_invite."""

    def _invite(self, db_session, household, owner):
        db_session.add(
            Invite(
                household_id=household.id,
                email="p@example.com",
                token_hash=hash_token("join-token"),
                expires_at=NOW + INVITE_TTL,
                invited_by_user_id=owner.id,
            )
        )
        db_session.commit()
        return "join-token"

    def test_accept_adds_member(self, db_session: Session, household, owner, partner, add_profile):
        """Test accepting joins the household as a member and flips onboarding."""
        add_profile(partner.id)
        token = self._invite(db_session, household, owner)

        household_id = make_service(db_session).accept_invite(partner, token)

        assert household_id == household.id
        member = db_session.get(HouseholdMember, (household.id, partner.id))
        assert member.role == HouseholdRole.MEMBER
        invite = db_session.execute(select(Invite)).scalar_one()
        assert invite.accepted_at is not None
        profile = db_session.get(Profile, partner.id)
        assert profile.onboarding_status == OnboardingStatus.IN_HOUSEHOLD

    def test_second_accept_is_already_used(self, db_session: Session, household, owner, partner):
        """Test a replayed token gets INVITE_ALREADY_USED and no second row."""
        token = self._invite(db_session, household, owner)
        service = make_service(db_session)
        service.accept_invite(partner, token)

        with pytest.raises(ResourceConflictException) as exc_info:
            service.accept_invite(partner, token)

        assert exc_info.value.code == ErrorCode.INVITE_ALREADY_USED
        assert exc_info.value.status_code == 409
        assert membership_count(db_session, household.id, partner.id) == 1

    def test_retry_before_accept_lands_does_not_duplicate(
        self, db_session: Session, household, owner, partner
    ):
        """Test a retry after a half-finished accept keeps one membership."""
        token = self._invite(db_session, household, owner)
        service = make_service(db_session)

        # First attempt only got as far as the membership upsert
        service.membership_repo.upsert_member(household.id, partner.id)
        assert service.accept_invite(partner, token) == household.id

        assert membership_count(db_session, household.id, partner.id) == 1

    def test_accept_keeps_existing_admin_role(
        self, db_session: Session, household, owner, partner, add_member
    ):
        """Test an admin redeeming an invite is not demoted."""
        add_member(household.id, partner.id, HouseholdRole.ADMIN)
        token = self._invite(db_session, household, owner)

        make_service(db_session).accept_invite(partner, token)

        member = db_session.get(HouseholdMember, (household.id, partner.id))
        db_session.refresh(member)
        assert member.role == HouseholdRole.ADMIN

    def test_unknown_token(self, db_session: Session, household, partner):
        """Test an unknown token gets INVITE_NOT_FOUND."""
        with pytest.raises(ResourceNotFoundException) as exc_info:
            make_service(db_session).accept_invite(partner, "no-such-token")

        assert exc_info.value.code == ErrorCode.INVITE_NOT_FOUND

    def test_token_prefix_does_not_match(self, db_session: Session, household, owner, partner):
        """Test a truncated token does not match its invite."""
        token = self._invite(db_session, household, owner)

        with pytest.raises(ResourceNotFoundException):
            make_service(db_session).accept_invite(partner, token[:-2])

    @pytest.mark.parametrize("token", ["   ", "", None])
    def test_blank_token(self, db_session: Session, partner, token):
        """Test blank and null tokens are reported as missing."""
        with pytest.raises(MissingFieldException):
            make_service(db_session).accept_invite(partner, token)

    def _raw_invite(self, db_session, household, owner, expires_at):
        db_session.add(
            Invite(
                household_id=household.id,
                email="p@example.com",
                token_hash=hash_token("fixed-token"),
                expires_at=expires_at,
                invited_by_user_id=owner.id,
            )
        )
        db_session.commit()

    def test_expired_one_second_ago(self, db_session: Session, household, owner, partner):
        """Test an invite past its expiry gets INVITE_EXPIRED and grants nothing."""
        self._raw_invite(db_session, household, owner, NOW - timedelta(seconds=1))

        with pytest.raises(GoneException) as exc_info:
            make_service(db_session).accept_invite(partner, "fixed-token")

        assert exc_info.value.code == ErrorCode.INVITE_EXPIRED
        assert exc_info.value.status_code == 410
        assert membership_count(db_session, household.id, partner.id) == 0

    def test_expires_in_one_second_succeeds(self, db_session: Session, household, owner, partner):
        """Test an invite just before expiry is still accepted."""
        self._raw_invite(db_session, household, owner, NOW + timedelta(seconds=1))

        assert make_service(db_session).accept_invite(partner, "fixed-token") == household.id

    def test_expired_invite_row_is_not_rewritten(self, db_session: Session, household, owner, partner):
        """Test expiry is computed on read and never stamped."""
        self._raw_invite(db_session, household, owner, NOW - timedelta(days=1))

        with pytest.raises(GoneException):
            make_service(db_session).accept_invite(partner, "fixed-token")

        invite = db_session.execute(select(Invite)).scalar_one()
        assert invite.accepted_at is None


@pytest.mark.unit
class TestListPendingInvites:
    """Unit tests for InviteService.list_pending_invites."""

    @pytest.mark.asyncio
    async def test_lists_only_pending(self, db_session: Session, household, owner, partner):
        """Test accepted invites drop out of the pending list."""
        service = make_service(db_session)
        accepted = await service.create_invite(owner, household.id, "a@example.com")
        await service.create_invite(owner, household.id, "b@example.com")
        service.accept_invite(partner, token_from(accepted.invite_url))

        pending = service.list_pending_invites(owner, household.id)

        assert [i.email for i in pending] == ["b@example.com"]

    def test_member_cannot_list(self, db_session: Session, household, add_member, partner):
        """Test plain members cannot see pending invites."""
        add_member(household.id, partner.id)

        with pytest.raises(AuthorizationException) as exc_info:
            make_service(db_session).list_pending_invites(partner, household.id)

        assert exc_info.value.code == ErrorCode.NOT_ADMIN
