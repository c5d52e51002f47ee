from sqlalchemy import String, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
from datetime import datetime
from trackly.models.base import BaseModel


class Invite(BaseModel):
    """
    Single-use, time-limited invitation into a household.

    Only the SHA-256 hash of the invite token is stored; the raw token is handed
    to the inviter once and never persisted. Expiry is derived from expires_at
    at read time, so an expired invite row is never rewritten.
    """

    __tablename__ = "invites"

    household_id: Mapped[str] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    token_hash: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    invited_by_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
