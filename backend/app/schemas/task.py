from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime, date

from app.models.task import TaskPriority, TaskStatus
from app.schemas.common import Pagination


class TaskCreate(BaseModel):
    student_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[date] = None


class TaskUpdate(BaseModel):
    """Partial update; a task cannot be moved to another student"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[date] = None


class TaskResponse(BaseModel):
    id: int
    student_id: int
    student_name: Optional[str] = None
    created_by: Optional[int] = None
    created_by_username: Optional[str] = None
    title: str
    description: Optional[str] = None
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    task: TaskResponse


class TaskListResponse(BaseModel):
    success: bool = True
    tasks: List[TaskResponse]
    pagination: Pagination
