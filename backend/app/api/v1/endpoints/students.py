"""
Student records endpoints.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.models.activity_log import EntityType
from app.modules.auth.permissions import require_view_students, require_edit_student, require_delete_student
from app.modules.storage import BlobStorage, get_blob_storage
from app.schemas.auth import TokenClaims
from app.schemas.common import MessageResponse, Pagination
from app.schemas.student import (
    StudentCreate,
    StudentUpdate,
    StudentResponse,
    StudentEnvelope,
    StudentDetailEnvelope,
    StudentListResponse,
)
from app.services.activity_recorder import ActivityRecorder
from app.services.student_service import StudentService

router = APIRouter()


@router.get("", response_model=StudentListResponse)
async def list_students(
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, description="name, email, department, status, gpa, created_at, assigned_tasks"),
    order: Optional[str] = Query(None, description="asc or desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    claims: TokenClaims = Depends(require_view_students),
    db: AsyncSession = Depends(get_db)
):
    """List students with search, sorting and pagination"""
    students, pagination = await StudentService(db).list_students(
        search=search, sort_by=sort_by, order=order, page=page, limit=limit
    )
    return StudentListResponse(
        students=[StudentResponse.model_validate(s) for s in students],
        pagination=Pagination(**pagination),
    )


@router.get("/{student_id}", response_model=StudentDetailEnvelope)
async def get_student(
    student_id: int,
    claims: TokenClaims = Depends(require_view_students),
    db: AsyncSession = Depends(get_db)
):
    """Student with documents and tasks"""
    return StudentDetailEnvelope(student=await StudentService(db).get_student_detail(student_id))


@router.post("", response_model=StudentEnvelope, status_code=status.HTTP_201_CREATED)
async def create_student(
    data: StudentCreate,
    claims: TokenClaims = Depends(require_edit_student),
    db: AsyncSession = Depends(get_db)
):
    student = await StudentService(db).create_student(data)
    await ActivityRecorder(db).record(
        claims.id, f"Created new student: {student.name}", EntityType.STUDENT, student.id
    )
    return StudentEnvelope(message="Student created successfully", student=StudentResponse.model_validate(student))


@router.put("/{student_id}", response_model=StudentEnvelope)
async def update_student(
    student_id: int,
    data: StudentUpdate,
    claims: TokenClaims = Depends(require_edit_student),
    db: AsyncSession = Depends(get_db)
):
    student = await StudentService(db).update_student(student_id, data)
    await ActivityRecorder(db).record(
        claims.id, f"Updated student: {student.name}", EntityType.STUDENT, student.id
    )
    return StudentEnvelope(message="Student updated successfully", student=StudentResponse.model_validate(student))


@router.delete("/{student_id}", response_model=MessageResponse)
async def delete_student(
    student_id: int,
    claims: TokenClaims = Depends(require_delete_student),
    db: AsyncSession = Depends(get_db),
    blob_storage: BlobStorage = Depends(get_blob_storage)
):
    """Delete a student together with its tasks, documents and files"""
    student = await StudentService(db).delete_student(student_id, blob_storage)
    await ActivityRecorder(db).record(
        claims.id, f"Deleted student: {student.name}", EntityType.STUDENT, student_id
    )
    return MessageResponse(message="Student deleted successfully")
