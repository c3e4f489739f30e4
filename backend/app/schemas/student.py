from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime

from app.models.student import StudentStatus
from app.schemas.common import Pagination
from app.schemas.document import DocumentResponse
from app.schemas.task import TaskResponse


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    department: Optional[str] = Field(None, max_length=255)
    status: StudentStatus = StudentStatus.ACTIVE
    gpa: Optional[float] = Field(None, ge=0, le=4)
    assigned_tasks: Optional[str] = None


class StudentUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    department: Optional[str] = Field(None, max_length=255)
    status: Optional[StudentStatus] = None
    gpa: Optional[float] = Field(None, ge=0, le=4)
    assigned_tasks: Optional[str] = None


class StudentResponse(BaseModel):
    id: int
    name: str
    email: str
    department: Optional[str] = None
    status: StudentStatus
    gpa: Optional[float] = None
    assigned_tasks: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudentDetail(StudentResponse):
    documents: List[DocumentResponse] = []
    tasks: List[TaskResponse] = []


class StudentEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    student: StudentResponse


class StudentDetailEnvelope(BaseModel):
    success: bool = True
    student: StudentDetail


class StudentListResponse(BaseModel):
    success: bool = True
    students: List[StudentResponse]
    pagination: Pagination
