from sqlalchemy import String, ForeignKey, DateTime, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List
from datetime import datetime
import enum
from trackly.models.base import Base, BaseModel


class HouseholdRole(str, enum.Enum):
    """Role tiers inside a household"""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


# Roles allowed to invite people and change roles
MANAGER_ROLES = frozenset({HouseholdRole.OWNER, HouseholdRole.ADMIN})

# Roles that the role-management endpoint may assign; owner is only set at creation
ASSIGNABLE_ROLES = frozenset({HouseholdRole.ADMIN, HouseholdRole.MEMBER})


class Household(BaseModel):
    """
    Household model, the tenant that owns tasks and memberships.
    The owner reference never changes after creation.
    """

    __tablename__ = "households"

    name: Mapped[str] = mapped_column(String(80), nullable=False)

    # External identity of the creator
    owner_user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    members: Mapped[List["HouseholdMember"]] = relationship(
        "HouseholdMember",
        back_populates="household",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class HouseholdMember(Base):
    """Role of one user in one household; the pair is unique."""

    __tablename__ = "household_members"

    household_id: Mapped[str] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    role: Mapped[HouseholdRole] = mapped_column(
        SQLEnum(HouseholdRole, values_callable=lambda e: [m.value for m in e],
                native_enum=False, length=20),
        nullable=False,
        default=HouseholdRole.MEMBER,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    household: Mapped["Household"] = relationship("Household", back_populates="members")
