import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from trackly.core.exception import (
    BadRequestException,
    MissingFieldException,
    ResourceNotFoundException,
)
from trackly.models.task import Task, TaskStatus
from trackly.repositories.membership_repository import MembershipRepository
from trackly.repositories.profile_repository import ProfileRepository
from trackly.repositories.task_repository import TaskRepository
from trackly.schemas.errors import ErrorCode
from trackly.schemas.task import TaskSort, TaskStatusFilter
from trackly.security import Caller
from trackly.services.household_access import require_manager, require_member
from trackly.utils.datetime_utils import as_utc, utc_now

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 500
MAX_NOTES_LENGTH = 5000

# Deleted tasks stay restorable for this long before a manager may purge them
PURGE_AFTER = timedelta(days=30)

ASSIGNEE_ALL = "all"
ASSIGNEE_UNASSIGNED = "unassigned"
ASSIGNEE_ME = "me"

EDITABLE_FIELDS = ("title", "assigned_to", "due_date", "notes")


def clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise MissingFieldException("title")
    if len(title) > MAX_TITLE_LENGTH:
        raise BadRequestException(f"Task title must be {MAX_TITLE_LENGTH} characters or less")
    return title


def clean_notes(notes: Optional[str]) -> Optional[str]:
    if not notes:
        return None
    if len(notes) > MAX_NOTES_LENGTH:
        raise BadRequestException(f"Notes must be {MAX_NOTES_LENGTH} characters or less")
    return notes


class TaskService:
    """Service layer for household tasks. Every operation requires household membership."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.task_repo = TaskRepository(db)
        self.membership_repo = MembershipRepository(db)
        self.profile_repo = ProfileRepository(db)

    def _require_household(self, caller: Caller, household_id: Optional[str]) -> str:
        household_id = (household_id or "").strip()
        if not household_id:
            raise MissingFieldException("household_id")
        require_member(self.membership_repo, household_id, caller.id)
        return household_id

    def _clean_assignee(self, household_id: str, assigned_to: Optional[str]) -> Optional[str]:
        """Blank means unassigned; anyone else must belong to the household."""
        assigned_to = (assigned_to or "").strip()
        if not assigned_to:
            return None
        if self.membership_repo.get_role(household_id, assigned_to) is None:
            raise ResourceNotFoundException(
                "Assignee not found in household", code=ErrorCode.USER_NOT_FOUND
            )
        return assigned_to

    def _get_task(self, caller: Caller, task_id: str) -> Task:
        task = self.task_repo.get_active(task_id)
        if task is None:
            raise ResourceNotFoundException("Task not found")
        require_member(self.membership_repo, task.household_id, caller.id)
        return task

    def _get_deleted_task(self, caller: Caller, task_id: str) -> Task:
        task = self.task_repo.get(task_id)
        if task is None or not task.is_deleted:
            raise ResourceNotFoundException("Deleted task not found")
        require_member(self.membership_repo, task.household_id, caller.id)
        return task

    def list_tasks(
        self,
        caller: Caller,
        household_id: Optional[str],
        status: TaskStatusFilter = TaskStatusFilter.ACTIVE,
        assignee: str = ASSIGNEE_ALL,
        sort_by: TaskSort = TaskSort.DUE_DATE,
    ) -> List[Tuple[Task, Optional[str]]]:
        """
        List the household's live tasks.

        Args:
            caller: Authenticated household member
            household_id: Household to list
            status: active (incomplete), completed or all
            assignee: all, unassigned, me, or a member's user ID
            sort_by: Sort order

        Returns:
            List of (task, assignee display name)
        """
        household_id = self._require_household(caller, household_id)

        status_value = {
            TaskStatusFilter.ACTIVE: TaskStatus.INCOMPLETE,
            TaskStatusFilter.COMPLETED: TaskStatus.COMPLETE,
            TaskStatusFilter.ALL: None,
        }[status]

        assignee = (assignee or ASSIGNEE_ALL).strip()
        assigned_to = None
        if assignee == ASSIGNEE_ME:
            assigned_to = caller.id
        elif assignee not in (ASSIGNEE_ALL, ASSIGNEE_UNASSIGNED):
            assigned_to = assignee

        return self.task_repo.list_for_household(
            household_id,
            status=status_value,
            assigned_to=assigned_to,
            unassigned=assignee == ASSIGNEE_UNASSIGNED,
            sort_by=sort_by.value,
        )

    def get_task(self, caller: Caller, task_id: str) -> Task:
        return self._get_task(caller, task_id)

    def assignee_name(self, task: Task) -> Optional[str]:
        if task.assigned_to is None:
            return None
        profile = self.profile_repo.get_by_user_id(task.assigned_to)
        return profile.display_name if profile else None

    def create_task(
        self,
        caller: Caller,
        household_id: Optional[str],
        title: Optional[str],
        assigned_to: Optional[str] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> Task:
        """
        Create an incomplete task in a household.

        Raises:
            MissingFieldException: household_id or title blank
            BadRequestException: title or notes too long
            AuthorizationException: caller not a member
            ResourceNotFoundException: assignee not a member (USER_NOT_FOUND)
        """
        household_id = self._require_household(caller, household_id)
        task = Task(
            household_id=household_id,
            title=clean_title(title),
            status=TaskStatus.INCOMPLETE,
            assigned_to=self._clean_assignee(household_id, assigned_to),
            due_date=due_date,
            notes=clean_notes(notes),
            created_by_user_id=caller.id,
            created_at=self.clock(),
        )
        task = self.task_repo.create(task)
        logger.info("Task %s created in household %s by %s", task.id, household_id, caller.id)
        return task

    def update_task(self, caller: Caller, task_id: str, changes: Dict[str, Any]) -> Task:
        """
        Edit title, assignee, due date or notes. Only keys present in changes are touched.
        """
        task = self._get_task(caller, task_id)

        updates: Dict[str, Any] = {}
        for key in EDITABLE_FIELDS:
            if key not in changes:
                continue
            value = changes[key]
            if key == "title":
                value = clean_title(value)
            elif key == "assigned_to":
                value = self._clean_assignee(task.household_id, value)
            elif key == "notes":
                value = clean_notes(value)
            updates[key] = value

        if not updates:
            return task
        return self.task_repo.update(task.id, updates)

    def set_status(self, caller: Caller, task_id: str, status: Optional[str]) -> Task:
        status = (status or "").strip().lower()
        if not status:
            raise MissingFieldException("status")
        try:
            new_status = TaskStatus(status)
        except ValueError:
            raise BadRequestException("Invalid status. Must be incomplete or complete")

        task = self._get_task(caller, task_id)
        return self.task_repo.update(task.id, {"status": new_status})

    def delete_task(self, caller: Caller, task_id: str) -> None:
        """Soft-delete a task; it can be restored from the deleted list."""
        task = self._get_task(caller, task_id)
        self.task_repo.soft_delete_many(task.household_id, [task.id], self.clock())
        logger.info("Task %s deleted by %s", task.id, caller.id)

    def restore_task(self, caller: Caller, task_id: str) -> Task:
        task = self._get_deleted_task(caller, task_id)
        return self.task_repo.update(task.id, {"deleted_at": None})

    def list_deleted_tasks(self, caller: Caller, household_id: Optional[str]) -> List[Task]:
        household_id = self._require_household(caller, household_id)
        return self.task_repo.list_deleted(household_id)

    def purge_task(self, caller: Caller, task_id: str) -> None:
        """
        Permanently remove a deleted task.

        Only owners and admins may purge, and only once the task has been
        deleted for longer than PURGE_AFTER.
        """
        task = self._get_deleted_task(caller, task_id)
        require_manager(
            self.membership_repo,
            task.household_id,
            caller.id,
            "Only admins can permanently delete tasks",
        )
        if as_utc(task.deleted_at) > self.clock() - PURGE_AFTER:
            raise BadRequestException(
                f"Deleted tasks can be removed permanently after {PURGE_AFTER.days} days"
            )

        household_id = task.household_id
        self.task_repo.delete(task.id)
        logger.info("Task %s purged from household %s by %s", task_id, household_id, caller.id)

    def bulk_assign(
        self,
        caller: Caller,
        household_id: Optional[str],
        task_ids: Sequence[str],
        assigned_to: Optional[str],
    ) -> int:
        """Assign (or unassign) several live tasks of one household. Returns the number changed."""
        household_id = self._require_household(caller, household_id)
        if not task_ids:
            raise MissingFieldException("task_ids")
        assignee = self._clean_assignee(household_id, assigned_to)
        return self.task_repo.assign_many(household_id, task_ids, assignee)

    def bulk_delete(
        self, caller: Caller, household_id: Optional[str], task_ids: Sequence[str]
    ) -> int:
        """Soft-delete several live tasks of one household. Returns the number deleted."""
        household_id = self._require_household(caller, household_id)
        if not task_ids:
            raise MissingFieldException("task_ids")
        count = self.task_repo.soft_delete_many(household_id, task_ids, self.clock())
        logger.info("%d tasks deleted in household %s by %s", count, household_id, caller.id)
        return count
