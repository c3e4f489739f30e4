"""
Task / assignment endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.models.activity_log import EntityType
from app.models.task import TaskPriority, TaskStatus
from app.modules.auth.permissions import require_view_students, require_edit_student
from app.schemas.auth import TokenClaims
from app.schemas.common import MessageResponse, Pagination
from app.schemas.task import TaskCreate, TaskUpdate, TaskEnvelope, TaskListResponse
from app.services.activity_recorder import ActivityRecorder
from app.services.task_service import TaskService

router = APIRouter()


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    student_id: Optional[int] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, description="priority, title, status, due_date, created_at, student_name"),
    order: Optional[str] = Query(None, description="asc or desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    claims: TokenClaims = Depends(require_view_students),
    db: AsyncSession = Depends(get_db)
):
    """List tasks, most urgent first unless another sort is requested"""
    tasks, pagination = await TaskService(db).list_tasks(
        student_id=student_id,
        status=status,
        priority=priority,
        search=search,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
    )
    return TaskListResponse(tasks=tasks, pagination=Pagination(**pagination))


@router.get("/{task_id}", response_model=TaskEnvelope)
async def get_task(
    task_id: int,
    claims: TokenClaims = Depends(require_view_students),
    db: AsyncSession = Depends(get_db)
):
    return TaskEnvelope(task=await TaskService(db).get_task(task_id))


@router.post("", response_model=TaskEnvelope, status_code=201)
async def create_task(
    data: TaskCreate,
    claims: TokenClaims = Depends(require_edit_student),
    db: AsyncSession = Depends(get_db)
):
    task = await TaskService(db).create_task(data, actor_id=claims.id)
    await ActivityRecorder(db).record(
        claims.id, f'Assigned task "{task.title}" to {task.student_name}', EntityType.TASK, task.id
    )
    return TaskEnvelope(message="Task created successfully", task=task)


@router.put("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    claims: TokenClaims = Depends(require_edit_student),
    db: AsyncSession = Depends(get_db)
):
    task = await TaskService(db).update_task(task_id, data)
    await ActivityRecorder(db).record(
        claims.id, f'Updated task "{task.title}" for {task.student_name}', EntityType.TASK, task.id
    )
    return TaskEnvelope(message="Task updated successfully", task=task)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: int,
    claims: TokenClaims = Depends(require_edit_student),
    db: AsyncSession = Depends(get_db)
):
    task = await TaskService(db).delete_task(task_id)
    await ActivityRecorder(db).record(
        claims.id, f'Deleted task "{task.title}"', EntityType.TASK, task_id
    )
    return MessageResponse(message="Task deleted successfully")
