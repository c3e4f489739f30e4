"""
Dashboard endpoints: headline statistics and the activity feed.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.activity_log import EntityType
from app.modules.auth.permissions import require_view_students, require_activity_access
from app.modules.storage import BlobStorage, get_blob_storage
from app.schemas.activity import ActivityListResponse, DashboardStatsResponse
from app.schemas.auth import TokenClaims
from app.services.activity_recorder import ActivityRecorder
from app.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_stats(
    claims: TokenClaims = Depends(require_view_students),
    db: AsyncSession = Depends(get_db),
    blob_storage: BlobStorage = Depends(get_blob_storage)
):
    return DashboardStatsResponse(stats=await DashboardService(db, blob_storage).get_stats())


@router.get("/activities", response_model=ActivityListResponse)
async def list_activities(
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    claims: TokenClaims = Depends(require_activity_access),
    db: AsyncSession = Depends(get_db)
):
    """Recent activity across the system, newest first"""
    activities, total = await ActivityRecorder(db).list_recent(limit=limit, offset=offset)
    return ActivityListResponse(activities=activities, total=total, limit=limit, offset=offset)


@router.get("/activities/student/{student_id}", response_model=ActivityListResponse)
async def list_student_activities(
    student_id: int,
    limit: int = Query(10, ge=1, le=200),
    claims: TokenClaims = Depends(require_activity_access),
    db: AsyncSession = Depends(get_db)
):
    activities = await ActivityRecorder(db).list_for_entity(EntityType.STUDENT, student_id, limit=limit)
    return ActivityListResponse(activities=activities, limit=limit)


@router.get("/activities/{entity_type}/{entity_id}", response_model=ActivityListResponse)
async def list_entity_activities(
    entity_type: EntityType,
    entity_id: int,
    limit: int = Query(10, ge=1, le=200),
    claims: TokenClaims = Depends(require_activity_access),
    db: AsyncSession = Depends(get_db)
):
    activities = await ActivityRecorder(db).list_for_entity(entity_type, entity_id, limit=limit)
    return ActivityListResponse(activities=activities, limit=limit)
