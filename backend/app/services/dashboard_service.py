"""
Dashboard Service - headline numbers for the home screen
"""
from datetime import datetime, timedelta
from typing import Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.models.student import Student, StudentStatus
from app.models.document import Document
from app.models.task import Task, TaskStatus, HIGH_PRIORITIES
from app.models.user import User, UserRole
from app.schemas.activity import DashboardStats, TaskStats
from app.services.document_service import DocumentService
from app.modules.storage import BlobStorage


RECENT_UPLOAD_DAYS = 7
RECENT_UPLOADS_LIMIT = 10


class DashboardService:
    def __init__(self, db: AsyncSession, blob_storage: BlobStorage):
        self.db = db
        self.documents = DocumentService(db, blob_storage)

    async def _count(self, query) -> int:
        return await self.db.scalar(query) or 0

    async def get_stats(self) -> DashboardStats:
        since = datetime.utcnow() - timedelta(days=RECENT_UPLOAD_DAYS)

        total_students = await self._count(select(func.count(Student.id)))
        total_assistants = await self._count(
            select(func.count(User.id)).where(User.role == UserRole.ASSISTANT)
        )
        total_documents = await self._count(select(func.count(Document.id)))
        recent_uploads = await self._count(
            select(func.count(Document.id)).where(Document.upload_date >= since)
        )

        recent_list = await self.documents.list_recent(RECENT_UPLOADS_LIMIT)

        status_rows = await self.db.execute(
            select(Student.status, func.count(Student.id)).group_by(Student.status)
        )
        students_by_status: Dict[str, int] = {status.value: 0 for status in StudentStatus}
        for status, count in status_rows.all():
            students_by_status[status.value] = count

        tasks = TaskStats(
            total=await self._count(select(func.count(Task.id))),
            high_priority=await self._count(
                select(func.count(Task.id)).where(Task.priority.in_(HIGH_PRIORITIES))
            ),
            pending=await self._count(
                select(func.count(Task.id)).where(Task.status == TaskStatus.PENDING)
            ),
        )

        return DashboardStats(
            total_students=total_students,
            total_assistants=total_assistants,
            total_documents=total_documents,
            recent_uploads=recent_uploads,
            recent_uploads_list=recent_list,
            students_by_status=students_by_status,
            tasks=tasks,
        )
