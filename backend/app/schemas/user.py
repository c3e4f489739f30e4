from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime

from app.models.user import UserRole
from app.schemas.common import Pagination


class UserResponse(BaseModel):
    """Staff account as returned by the API; never carries the password hash"""
    id: int
    username: str
    email: str
    role: UserRole
    can_view_students: bool
    can_edit_student: bool
    can_delete_student: bool
    can_upload_docs: bool
    can_manage_users: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse


class UserListResponse(BaseModel):
    success: bool = True
    users: List[UserResponse]
    pagination: Pagination


class PermissionsUpdate(BaseModel):
    """Any subset of the capability flags"""
    can_view_students: Optional[bool] = None
    can_edit_student: Optional[bool] = None
    can_delete_student: Optional[bool] = None
    can_upload_docs: Optional[bool] = None
    can_manage_users: Optional[bool] = None


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None
