from sqlalchemy import String, Text, Date, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
from datetime import date, datetime
import enum
from trackly.models.base import BaseModel


class TaskStatus(str, enum.Enum):
    """Completion state of a task"""

    INCOMPLETE = "incomplete"
    COMPLETE = "complete"


class Task(BaseModel):
    """
    Household chore or to-do item.

    Deleting a task only stamps deleted_at; the row stays restorable until a
    manager removes it for good.
    """

    __tablename__ = "tasks"

    household_id: Mapped[str] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[TaskStatus] = mapped_column(
        SQLEnum(TaskStatus, values_callable=lambda e: [m.value for m in e],
                native_enum=False, length=20),
        nullable=False,
        default=TaskStatus.INCOMPLETE,
    )

    # External identity of the assignee; must be a member of the household
    assigned_to: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
