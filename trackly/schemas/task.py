from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date, datetime
from enum import Enum


class TaskStatusFilter(str, Enum):
    """Which tasks a list shows by completion state."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ALL = "all"


class TaskSort(str, Enum):
    """Sort order options for task lists."""
    DUE_DATE = "due_date"
    CREATED_AT = "created_at"
    TITLE = "title"
    ASSIGNEE = "assignee"


class TaskCreate(BaseModel):
    """Schema for creating a new task."""
    model_config = ConfigDict(extra="forbid")

    household_id: Optional[str] = Field(None, description="Household ID")
    title: Optional[str] = Field(None, description="Task title (1-500 characters after trimming)")
    assigned_to: Optional[str] = Field(None, description="User ID of a household member")
    due_date: Optional[date] = Field(None, description="Due date (YYYY-MM-DD)")
    notes: Optional[str] = Field(None, description="Free-form notes (max 5000 characters)")


class TaskUpdate(BaseModel):
    """Schema for editing a task. Only the fields sent are changed; null clears a field."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Optional[str] = Field(None, description="'incomplete' or 'complete'")


class TaskBulkAssign(BaseModel):
    """Schema for assigning several tasks at once."""
    model_config = ConfigDict(extra="forbid")

    household_id: Optional[str] = None
    task_ids: List[str] = Field(default_factory=list)
    assigned_to: Optional[str] = Field(None, description="Member user ID, or null to unassign")


class TaskBulkDelete(BaseModel):
    """Schema for soft-deleting several tasks at once."""
    model_config = ConfigDict(extra="forbid")

    household_id: Optional[str] = None
    task_ids: List[str] = Field(default_factory=list)


class TaskResponse(BaseModel):
    """Schema for task response."""
    id: str
    household_id: str
    title: str
    status: str
    assigned_to: Optional[str]
    assigned_to_name: Optional[str] = None
    due_date: Optional[date]
    notes: Optional[str]
    created_by_user_id: str
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]


class TaskBulkResult(BaseModel):
    updated: int


class TaskDeletedResponse(BaseModel):
    success: bool = True
