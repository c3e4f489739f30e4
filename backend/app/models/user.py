from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Integer
from datetime import datetime
import enum

from app.core.database import Base


class UserRole(str, enum.Enum):
    """User roles"""
    SUPERVISOR = "supervisor"
    ASSISTANT = "assistant"


class Capability(str, enum.Enum):
    """
    Named permissions an assistant can be granted.

    The value is the column (and token claim) holding the flag. A supervisor
    holds every capability whatever its stored flags say.
    """
    VIEW_STUDENTS = "can_view_students"
    EDIT_STUDENT = "can_edit_student"
    DELETE_STUDENT = "can_delete_student"
    UPLOAD_DOCS = "can_upload_docs"
    MANAGE_USERS = "can_manage_users"


# Flags a freshly registered assistant gets when the request leaves them out
DEFAULT_CAPABILITIES = {
    Capability.VIEW_STUDENTS: True,
    Capability.EDIT_STUDENT: False,
    Capability.DELETE_STUDENT: False,
    Capability.UPLOAD_DOCS: False,
    Capability.MANAGE_USERS: False,
}


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    """Staff account: one supervisor plus any number of assistants"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=_enum_values),
        default=UserRole.ASSISTANT,
        nullable=False
    )

    # Capability flags
    can_view_students = Column(Boolean, default=True, nullable=False)
    can_edit_student = Column(Boolean, default=False, nullable=False)
    can_delete_student = Column(Boolean, default=False, nullable=False)
    can_upload_docs = Column(Boolean, default=False, nullable=False)
    can_manage_users = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_supervisor(self) -> bool:
        return self.role == UserRole.SUPERVISOR

    def capabilities(self) -> dict:
        """Stored flags keyed by Capability"""
        return {capability: bool(getattr(self, capability.value)) for capability in Capability}

    def __repr__(self):
        return f"<User {self.username} ({self.role.value if self.role else None})>"
