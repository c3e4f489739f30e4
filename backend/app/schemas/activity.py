from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime

from app.models.user import UserRole
from app.schemas.document import DocumentResponse


class ActivityResponse(BaseModel):
    """Activity entry joined with its actor"""
    id: int
    user_id: int
    username: Optional[str] = None
    role: Optional[UserRole] = None
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    timestamp: datetime


class ActivityListResponse(BaseModel):
    success: bool = True
    activities: List[ActivityResponse]
    total: Optional[int] = None
    limit: int
    offset: int = 0


class TaskStats(BaseModel):
    total: int
    high_priority: int
    pending: int


class DashboardStats(BaseModel):
    """Dashboard KPI statistics"""
    total_students: int
    total_assistants: int
    total_documents: int
    recent_uploads: int  # last 7 days
    recent_uploads_list: List[DocumentResponse]
    students_by_status: Dict[str, int]
    tasks: TaskStats


class DashboardStatsResponse(BaseModel):
    success: bool = True
    stats: DashboardStats
