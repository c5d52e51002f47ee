from sqlalchemy.orm import Session
from sqlalchemy import select, update
from typing import List, Optional
from datetime import datetime
from trackly.models.invite import Invite
from trackly.repositories.repository import BaseRepository


class InviteRepository(BaseRepository[Invite]):
    """Repository for invite rows. Lookups are by token hash only."""

    def __init__(self, db: Session):
        super().__init__(Invite, db)

    def get_by_token_hash(self, token_hash: str) -> Optional[Invite]:
        stmt = select(Invite).where(Invite.token_hash == token_hash).limit(1)
        return self.db.execute(stmt).scalars().first()

    def mark_accepted(self, invite_id: str, accepted_at: datetime) -> bool:
        """
        Stamp accepted_at if the invite is still unaccepted.

        Returns:
            False when another request accepted it first
        """
        stmt = (
            update(Invite)
            .where(Invite.id == invite_id, Invite.accepted_at.is_(None))
            .values(accepted_at=accepted_at)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount > 0

    def list_pending(self, household_id: str, now: datetime) -> List[Invite]:
        """Unaccepted, unexpired invites of a household, newest first."""
        stmt = (
            select(Invite)
            .where(
                Invite.household_id == household_id,
                Invite.accepted_at.is_(None),
                Invite.expires_at > now,
            )
            .order_by(Invite.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())
