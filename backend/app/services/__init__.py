from app.services.activity_recorder import ActivityRecorder
from app.services.student_service import StudentService
from app.services.task_service import TaskService
from app.services.user_service import UserService
from app.services.document_service import DocumentService
from app.services.dashboard_service import DashboardService

__all__ = [
    "ActivityRecorder",
    "StudentService",
    "TaskService",
    "UserService",
    "DocumentService",
    "DashboardService",
]
