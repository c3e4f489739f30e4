"""
Activity Recorder - append-only audit feed

Entries are written after the operation they describe has committed, on the
same session, inside a savepoint. Recording is best effort: a failure rolls
back only that savepoint, is logged for operators and is reported as False.
Callers are free to ignore the result. It never undoes or fails the operation
that was already committed.
"""
from typing import Optional, List, Tuple, Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, func

from app.models.activity_log import ActivityLog, EntityType
from app.models.user import User
from app.schemas.activity import ActivityResponse
from app.core.logging_config import logger


class ActivityRecorder:
    """Writes and reads activity log entries"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        actor_id: int,
        action: str,
        entity_type: Union[EntityType, str],
        entity_id: Optional[int] = None
    ) -> bool:
        entity_type = EntityType(entity_type).value
        entry = ActivityLog(
            user_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        try:
            # A failed insert rolls back the savepoint only
            async with self.db.begin_nested():
                self.db.add(entry)
        except SQLAlchemyError as e:
            logger.log_error_with_context(
                e,
                context="activity log",
                actor_id=actor_id,
                activity_action=action,
                entity_type=entity_type,
                entity_id=entity_id,
            )
            return False

        await self.db.commit()
        return True

    def _feed_query(self):
        return (
            select(ActivityLog, User.username, User.role)
            .outerjoin(User, ActivityLog.user_id == User.id)
            .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        )

    @staticmethod
    def _to_response(row) -> ActivityResponse:
        entry, username, role = row
        return ActivityResponse(
            id=entry.id,
            user_id=entry.user_id,
            username=username,
            role=role,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            timestamp=entry.timestamp,
        )

    async def list_recent(self, limit: int = 20, offset: int = 0) -> Tuple[List[ActivityResponse], int]:
        """Newest first, each entry with its actor's username and role"""
        total = await self.db.scalar(select(func.count(ActivityLog.id))) or 0
        result = await self.db.execute(self._feed_query().offset(offset).limit(limit))
        return [self._to_response(row) for row in result.all()], total

    async def list_for_entity(
        self,
        entity_type: Union[EntityType, str],
        entity_id: int,
        limit: int = 10
    ) -> List[ActivityResponse]:
        query = self._feed_query().where(
            ActivityLog.entity_type == EntityType(entity_type).value,
            ActivityLog.entity_id == entity_id,
        ).limit(limit)
        result = await self.db.execute(query)
        return [self._to_response(row) for row in result.all()]
