# API endpoints
from . import auth, students, tasks, documents, users, dashboard

__all__ = ["auth", "students", "tasks", "documents", "users", "dashboard"]
