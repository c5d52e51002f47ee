from sqlalchemy import String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
from datetime import datetime
import enum
from trackly.models.base import Base


class OnboardingStatus(str, enum.Enum):
    """Where a user is in the first-run flow"""

    NEW = "new"
    IN_HOUSEHOLD = "in_household"


class Profile(Base):
    """Per-user profile, keyed by the identity provider's user id."""

    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    onboarding_status: Mapped[OnboardingStatus] = mapped_column(
        SQLEnum(OnboardingStatus, values_callable=lambda e: [m.value for m in e],
                native_enum=False, length=20),
        nullable=False,
        default=OnboardingStatus.NEW,
    )
