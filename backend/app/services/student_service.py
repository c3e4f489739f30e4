"""
Student Service - student records and their cascade
"""
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import select, delete

from app.models.student import Student
from app.models.document import Document
from app.models.task import Task
from app.models.user import User
from app.schemas.student import StudentCreate, StudentUpdate, StudentDetail, StudentResponse
from app.schemas.document import DocumentResponse
from app.schemas.task import TaskResponse
from app.modules.storage import BlobStorage
from app.core.exceptions import (
    StudentNotFoundError,
    ConflictError,
    BadRequestError,
    NoFieldsToUpdateError,
    InternalError,
)
from app.core.logging_config import logger
from app.utils.pagination import paginate, resolve_sort, resolve_order, search_filter


SORT_COLUMNS = {
    "name": Student.name,
    "email": Student.email,
    "department": Student.department,
    "status": Student.status,
    "gpa": Student.gpa,
    "created_at": Student.created_at,
    "assigned_tasks": Student.assigned_tasks,
}
DEFAULT_SORT = "created_at"
SEARCH_COLUMNS = (Student.name, Student.email, Student.department)
REQUIRED_FIELDS = ("name", "email", "status")


class StudentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_students(
        self,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Student], Dict[str, int]]:
        query = select(Student)

        condition = search_filter(search, SEARCH_COLUMNS)
        if condition is not None:
            query = query.where(condition)

        _, sort_column = resolve_sort(sort_by, SORT_COLUMNS, DEFAULT_SORT)
        if resolve_order(order) == "asc":
            query = query.order_by(sort_column.asc(), Student.id.asc())
        else:
            query = query.order_by(sort_column.desc(), Student.id.desc())

        return await paginate(self.db, query, page=page, limit=limit)

    async def get_student(self, student_id: int) -> Student:
        student = await self.db.get(Student, student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        return student

    async def get_student_detail(self, student_id: int) -> StudentDetail:
        """Student with its documents and tasks"""
        student = await self.get_student(student_id)

        doc_rows = await self.db.execute(
            select(Document, User.username)
            .outerjoin(User, Document.uploaded_by == User.id)
            .where(Document.student_id == student_id)
            .order_by(Document.upload_date.desc(), Document.id.desc())
        )
        documents = [
            DocumentResponse.model_validate(document).model_copy(update={
                "student_name": student.name,
                "uploaded_by_username": username,
            })
            for document, username in doc_rows.all()
        ]

        task_rows = await self.db.execute(
            select(Task, User.username)
            .outerjoin(User, Task.created_by == User.id)
            .where(Task.student_id == student_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        tasks = [
            TaskResponse.model_validate(task).model_copy(update={
                "student_name": student.name,
                "created_by_username": username,
            })
            for task, username in task_rows.all()
        ]

        return StudentDetail(
            **StudentResponse.model_validate(student).model_dump(),
            documents=documents,
            tasks=tasks,
        )

    async def _ensure_email_available(self, email: str, exclude_id: Optional[int] = None) -> None:
        query = select(Student.id).where(Student.email == email)
        if exclude_id is not None:
            query = query.where(Student.id != exclude_id)
        if await self.db.scalar(query) is not None:
            raise ConflictError("Student with this email already exists", field="email")

    async def _commit(self) -> None:
        """Commit, turning a uniqueness race into Conflict"""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Student with this email already exists", field="email")

    async def create_student(self, data: StudentCreate) -> Student:
        await self._ensure_email_available(data.email)

        student = Student(**data.model_dump())
        self.db.add(student)
        await self._commit()
        await self.db.refresh(student)

        logger.info(f"Created student {student.id} ({student.email})")
        return student

    async def update_student(self, student_id: int, data: StudentUpdate) -> Student:
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        if not changes:
            raise NoFieldsToUpdateError()
        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise BadRequestError(f"{field} cannot be empty", field=field)

        student = await self.get_student(student_id)
        if "email" in changes and changes["email"] != student.email:
            await self._ensure_email_available(changes["email"], exclude_id=student_id)

        for field, value in changes.items():
            setattr(student, field, value)
        await self._commit()
        await self.db.refresh(student)
        return student

    async def delete_student(self, student_id: int, blob_storage: BlobStorage) -> Student:
        """
        Delete a student with all of its tasks and documents.

        Rows go in one transaction; on any database error nothing is removed.
        Files are removed only after the commit, so a failed delete never
        leaves rows pointing at missing files.
        """
        student = await self.get_student(student_id)
        file_paths = list(await self.db.scalars(
            select(Document.file_path).where(Document.student_id == student_id)
        ))

        try:
            await self.db.execute(delete(Task).where(Task.student_id == student_id))
            await self.db.execute(delete(Document).where(Document.student_id == student_id))
            await self.db.execute(delete(Student).where(Student.id == student_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.log_error_with_context(e, context="student delete", student_id=student_id)
            raise InternalError("Failed to delete student")

        for file_path in file_paths:
            await blob_storage.discard(file_path)

        logger.info(f"Deleted student {student_id} with {len(file_paths)} document(s)")
        return student
