# Pydantic schemas
from app.schemas.common import Pagination, MessageResponse
from app.schemas.user import (
    UserResponse,
    UserEnvelope,
    UserListResponse,
    PermissionsUpdate,
    UserUpdate,
)
from app.schemas.auth import LoginRequest, RegisterRequest, TokenClaims, LoginResponse
from app.schemas.document import DocumentResponse, DocumentEnvelope, DocumentListResponse
from app.schemas.task import TaskCreate, TaskUpdate, TaskResponse, TaskEnvelope, TaskListResponse
from app.schemas.student import (
    StudentCreate,
    StudentUpdate,
    StudentResponse,
    StudentDetail,
    StudentEnvelope,
    StudentDetailEnvelope,
    StudentListResponse,
)
from app.schemas.activity import (
    ActivityResponse,
    ActivityListResponse,
    DashboardStats,
    DashboardStatsResponse,
)
