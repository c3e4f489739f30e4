"""
Task Service - assignments attached to students
"""
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, case

from app.models.task import Task, TaskPriority, TaskStatus, PRIORITY_RANK
from app.models.student import Student
from app.models.user import User
from app.schemas.task import TaskCreate, TaskUpdate, TaskResponse
from app.core.exceptions import (
    TaskNotFoundError,
    StudentNotFoundError,
    BadRequestError,
    NoFieldsToUpdateError,
)
from app.utils.pagination import paginate, resolve_sort, resolve_order, search_filter


# Higher is more urgent: Super Important sorts first under the default descending order
URGENCY = case(
    {priority: len(PRIORITY_RANK) + 1 - rank for priority, rank in PRIORITY_RANK.items()},
    value=Task.priority,
    else_=0,
)

SORT_COLUMNS = {
    "priority": URGENCY,
    "title": Task.title,
    "status": Task.status,
    "due_date": Task.due_date,
    "created_at": Task.created_at,
    "student_name": Student.name,
}
DEFAULT_SORT = "priority"
SEARCH_COLUMNS = (Task.title, Task.description, Student.name)
REQUIRED_FIELDS = ("title", "priority", "status")


def to_response(task: Task, student_name: Optional[str], created_by_username: Optional[str]) -> TaskResponse:
    return TaskResponse.model_validate(task).model_copy(update={
        "student_name": student_name,
        "created_by_username": created_by_username,
    })


class TaskService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_query(self):
        return (
            select(Task, Student.name, User.username)
            .join(Student, Task.student_id == Student.id)
            .outerjoin(User, Task.created_by == User.id)
        )

    async def list_tasks(
        self,
        student_id: Optional[int] = None,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[TaskResponse], Dict[str, int]]:
        """
        Filtered task listing.

        Default order is by priority (Super Important, Important, High,
        Medium, Low), then newest first.
        """
        query = self._base_query()

        if student_id is not None:
            query = query.where(Task.student_id == student_id)
        if status is not None:
            query = query.where(Task.status == status)
        if priority is not None:
            query = query.where(Task.priority == priority)
        condition = search_filter(search, SEARCH_COLUMNS)
        if condition is not None:
            query = query.where(condition)

        _, sort_column = resolve_sort(sort_by, SORT_COLUMNS, DEFAULT_SORT)
        primary = sort_column.asc() if resolve_order(order) == "asc" else sort_column.desc()
        query = query.order_by(primary, Task.created_at.desc(), Task.id.desc())

        rows, pagination = await paginate(self.db, query, page=page, limit=limit, scalars=False)
        return [to_response(*row) for row in rows], pagination

    async def get_task(self, task_id: int) -> TaskResponse:
        result = await self.db.execute(self._base_query().where(Task.id == task_id))
        row = result.first()
        if row is None:
            raise TaskNotFoundError(task_id)
        return to_response(*row)

    async def _get_task_row(self, task_id: int) -> Task:
        task = await self.db.get(Task, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def create_task(self, data: TaskCreate, actor_id: int) -> TaskResponse:
        student = await self.db.get(Student, data.student_id)
        if student is None:
            raise StudentNotFoundError(data.student_id)

        task = Task(**data.model_dump(), created_by=actor_id)
        self.db.add(task)
        await self.db.commit()
        return await self.get_task(task.id)

    async def update_task(self, task_id: int, data: TaskUpdate) -> TaskResponse:
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        if not changes:
            raise NoFieldsToUpdateError()
        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise BadRequestError(f"{field} cannot be empty", field=field)

        task = await self._get_task_row(task_id)
        for field, value in changes.items():
            setattr(task, field, value)
        await self.db.commit()
        return await self.get_task(task_id)

    async def delete_task(self, task_id: int) -> Task:
        task = await self._get_task_row(task_id)
        await self.db.delete(task)
        await self.db.commit()
        return task
