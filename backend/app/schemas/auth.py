from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from app.models.user import Capability, UserRole
from app.schemas.user import UserResponse


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """New assistant account. Omitted flags fall back to DEFAULT_CAPABILITIES."""
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    can_view_students: Optional[bool] = None
    can_edit_student: Optional[bool] = None
    can_delete_student: Optional[bool] = None
    can_upload_docs: Optional[bool] = None
    can_manage_users: Optional[bool] = None


class TokenClaims(BaseModel):
    """
    What a verified access token says about its bearer.

    The capability flags are the ones stored when the token was issued;
    changing a user's permissions does not touch tokens already handed out.
    """
    id: int
    username: str
    email: str
    role: UserRole
    can_view_students: bool = False
    can_edit_student: bool = False
    can_delete_student: bool = False
    can_upload_docs: bool = False
    can_manage_users: bool = False

    @property
    def is_supervisor(self) -> bool:
        return self.role == UserRole.SUPERVISOR

    def flag(self, capability: Capability) -> bool:
        return bool(getattr(self, capability.value))


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    user: UserResponse
