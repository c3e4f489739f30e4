"""
Staff account management (assistants).
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.models.activity_log import EntityType
from app.modules.auth.permissions import require_manage_users, require_supervisor
from app.schemas.auth import TokenClaims
from app.schemas.common import MessageResponse, Pagination
from app.schemas.user import (
    UserResponse,
    UserEnvelope,
    UserListResponse,
    PermissionsUpdate,
    UserUpdate,
)
from app.services.activity_recorder import ActivityRecorder
from app.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=UserListResponse)
async def list_users(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    claims: TokenClaims = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db)
):
    """List assistant accounts, newest first"""
    users, pagination = await UserService(db).list_assistants(search=search, page=page, limit=limit)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        pagination=Pagination(**pagination),
    )


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(
    user_id: int,
    claims: TokenClaims = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db)
):
    user = await UserService(db).get_user(user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: int,
    data: UserUpdate,
    claims: TokenClaims = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db)
):
    """Change username and/or email"""
    user = await UserService(db).update_profile(user_id, data)
    await ActivityRecorder(db).record(claims.id, f"Updated user: {user.username}", EntityType.USER, user.id)
    return UserEnvelope(message="User updated successfully", user=UserResponse.model_validate(user))


@router.put("/{user_id}/permissions", response_model=UserEnvelope)
async def update_permissions(
    user_id: int,
    data: PermissionsUpdate,
    claims: TokenClaims = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db)
):
    """Change an assistant's capability flags; takes effect at their next login"""
    user = await UserService(db).update_permissions(user_id, data)
    await ActivityRecorder(db).record(
        claims.id, f"Updated permissions for: {user.username}", EntityType.USER, user.id
    )
    return UserEnvelope(message="Permissions updated successfully", user=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    claims: TokenClaims = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db)
):
    user = await UserService(db).delete_user(user_id)
    await ActivityRecorder(db).record(claims.id, f"Deleted assistant: {user.username}", EntityType.USER, user_id)
    return MessageResponse(message="User deleted successfully")
