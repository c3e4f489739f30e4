# Re-export all models for convenient imports
from app.models.user import User, UserRole, Capability, DEFAULT_CAPABILITIES
from app.models.student import Student, StudentStatus
from app.models.document import Document
from app.models.task import Task, TaskPriority, TaskStatus, PRIORITY_RANK, HIGH_PRIORITIES
from app.models.activity_log import ActivityLog, EntityType

__all__ = [
    # User
    "User",
    "UserRole",
    "Capability",
    "DEFAULT_CAPABILITIES",
    # Student
    "Student",
    "StudentStatus",
    # Document
    "Document",
    # Task
    "Task",
    "TaskPriority",
    "TaskStatus",
    "PRIORITY_RANK",
    "HIGH_PRIORITIES",
    # Activity
    "ActivityLog",
    "EntityType",
]
