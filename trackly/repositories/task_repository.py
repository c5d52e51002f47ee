from sqlalchemy.orm import Session
from sqlalchemy import select, update, func
from typing import List, Optional, Sequence, Tuple
from datetime import datetime
from trackly.models.profile import Profile
from trackly.models.task import Task, TaskStatus
from trackly.repositories.repository import BaseRepository

SORT_DUE_DATE = "due_date"
SORT_CREATED_AT = "created_at"
SORT_TITLE = "title"
SORT_ASSIGNEE = "assignee"


class TaskRepository(BaseRepository[Task]):
    """Repository for household tasks."""

    def __init__(self, db: Session):
        super().__init__(Task, db)

    def get_active(self, task_id: str) -> Optional[Task]:
        """Get a task that has not been deleted."""
        task = self.get(task_id)
        if task is None or task.is_deleted:
            return None
        return task

    def list_for_household(
        self,
        household_id: str,
        status: Optional[TaskStatus] = None,
        assigned_to: Optional[str] = None,
        unassigned: bool = False,
        sort_by: str = SORT_DUE_DATE,
    ) -> List[Tuple[Task, Optional[str]]]:
        """
        Non-deleted tasks of a household with the assignee's display name.

        Args:
            household_id: Household to list
            status: Only tasks in this status; all statuses when None
            assigned_to: Only tasks assigned to this user
            unassigned: Only tasks without an assignee
            sort_by: due_date (undated last), created_at (oldest first),
                title (case-insensitive) or assignee (unassigned first, then by name)

        Returns:
            List of (task, assignee display name or None)
        """
        stmt = (
            select(Task, Profile.display_name)
            .outerjoin(Profile, Profile.user_id == Task.assigned_to)
            .where(Task.household_id == household_id, Task.deleted_at.is_(None))
        )
        if status is not None:
            stmt = stmt.where(Task.status == status)
        if unassigned:
            stmt = stmt.where(Task.assigned_to.is_(None))
        elif assigned_to is not None:
            stmt = stmt.where(Task.assigned_to == assigned_to)

        if sort_by == SORT_CREATED_AT:
            stmt = stmt.order_by(Task.created_at, Task.id)
        elif sort_by == SORT_TITLE:
            stmt = stmt.order_by(func.lower(Task.title), Task.created_at)
        elif sort_by == SORT_ASSIGNEE:
            stmt = stmt.order_by(
                Task.assigned_to.is_not(None),
                func.lower(Profile.display_name),
                Task.created_at,
            )
        else:
            stmt = stmt.order_by(Task.due_date.is_(None), Task.due_date, Task.created_at)

        return [(row[0], row[1]) for row in self.db.execute(stmt).all()]

    def list_deleted(self, household_id: str) -> List[Task]:
        """Soft-deleted tasks of a household, most recently deleted first."""
        stmt = (
            select(Task)
            .where(Task.household_id == household_id, Task.deleted_at.is_not(None))
            .order_by(Task.deleted_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def soft_delete_many(self, household_id: str, task_ids: Sequence[str], at: datetime) -> int:
        """Stamp deleted_at on the household's live tasks among task_ids."""
        stmt = (
            update(Task)
            .where(
                Task.household_id == household_id,
                Task.id.in_(list(task_ids)),
                Task.deleted_at.is_(None),
            )
            .values(deleted_at=at)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount

    def assign_many(
        self, household_id: str, task_ids: Sequence[str], assigned_to: Optional[str]
    ) -> int:
        """Set the assignee on the household's live tasks among task_ids."""
        stmt = (
            update(Task)
            .where(
                Task.household_id == household_id,
                Task.id.in_(list(task_ids)),
                Task.deleted_at.is_(None),
            )
            .values(assigned_to=assigned_to)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount
