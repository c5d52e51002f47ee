from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from trackly.database import get_db
from trackly.dependencies import get_current_user
from trackly.models.task import Task
from trackly.security import Caller
from trackly.schemas.task import (
    TaskBulkAssign,
    TaskBulkDelete,
    TaskBulkResult,
    TaskCreate,
    TaskDeletedResponse,
    TaskListResponse,
    TaskResponse,
    TaskSort,
    TaskStatusFilter,
    TaskStatusUpdate,
    TaskUpdate,
)
from trackly.services.task_service import ASSIGNEE_ALL, TaskService

router = APIRouter()


def to_response(task: Task, assigned_to_name: Optional[str] = None) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        household_id=task.household_id,
        title=task.title,
        status=task.status.value,
        assigned_to=task.assigned_to,
        assigned_to_name=assigned_to_name,
        due_date=task.due_date,
        notes=task.notes,
        created_by_user_id=task.created_by_user_id,
        deleted_at=task.deleted_at,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(
    household_id: str = Query(...),
    status_filter: TaskStatusFilter = Query(TaskStatusFilter.ACTIVE, alias="status"),
    assignee: str = Query(ASSIGNEE_ALL, description="all, unassigned, me or a member's user ID"),
    sort_by: TaskSort = Query(TaskSort.DUE_DATE),
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the household's tasks, filtered and sorted."""
    service = TaskService(db)
    rows = service.list_tasks(current_user, household_id, status_filter, assignee, sort_by)
    return TaskListResponse(tasks=[to_response(task, name) for task, name in rows])


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task in a household."""
    service = TaskService(db)
    task = service.create_task(
        current_user,
        task_data.household_id,
        task_data.title,
        assigned_to=task_data.assigned_to,
        due_date=task_data.due_date,
        notes=task_data.notes,
    )
    return to_response(task, service.assignee_name(task))


@router.get("/tasks/deleted", response_model=TaskListResponse)
async def list_deleted_tasks(
    household_id: str = Query(...),
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get soft-deleted tasks that can still be restored."""
    service = TaskService(db)
    tasks = service.list_deleted_tasks(current_user, household_id)
    return TaskListResponse(tasks=[to_response(task) for task in tasks])


@router.post("/tasks/bulk-assign", response_model=TaskBulkResult)
async def bulk_assign(
    assign_data: TaskBulkAssign,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Assign several tasks to one member, or unassign them."""
    service = TaskService(db)
    updated = service.bulk_assign(
        current_user, assign_data.household_id, assign_data.task_ids, assign_data.assigned_to
    )
    return TaskBulkResult(updated=updated)


@router.post("/tasks/bulk-delete", response_model=TaskBulkResult)
async def bulk_delete(
    delete_data: TaskBulkDelete,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Soft-delete several tasks."""
    service = TaskService(db)
    updated = service.bulk_delete(current_user, delete_data.household_id, delete_data.task_ids)
    return TaskBulkResult(updated=updated)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = TaskService(db)
    task = service.get_task(current_user, task_id)
    return to_response(task, service.assignee_name(task))


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit title, assignee, due date or notes."""
    service = TaskService(db)
    task = service.update_task(current_user, task_id, task_data.model_dump(exclude_unset=True))
    return to_response(task, service.assignee_name(task))


@router.patch("/tasks/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: str,
    status_data: TaskStatusUpdate,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark a task complete or incomplete."""
    service = TaskService(db)
    task = service.set_status(current_user, task_id, status_data.status)
    return to_response(task, service.assignee_name(task))


@router.delete("/tasks/{task_id}", response_model=TaskDeletedResponse)
async def delete_task(
    task_id: str,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Soft-delete a task."""
    service = TaskService(db)
    service.delete_task(current_user, task_id)
    return TaskDeletedResponse()


@router.post("/tasks/{task_id}/restore", response_model=TaskResponse)
async def restore_task(
    task_id: str,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Bring a soft-deleted task back."""
    service = TaskService(db)
    task = service.restore_task(current_user, task_id)
    return to_response(task, service.assignee_name(task))


@router.delete("/tasks/{task_id}/permanent", response_model=TaskDeletedResponse)
async def purge_task(
    task_id: str,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Permanently remove a task deleted more than 30 days ago (owner/admin only)."""
    service = TaskService(db)
    service.purge_task(current_user, task_id)
    return TaskDeletedResponse()
