"""
User Service - staff accounts (credential store)
"""
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import select, update, delete

from app.models.user import User, UserRole, Capability, DEFAULT_CAPABILITIES
from app.models.task import Task
from app.models.document import Document
from app.models.activity_log import ActivityLog
from app.schemas.auth import RegisterRequest
from app.schemas.user import PermissionsUpdate, UserUpdate
from app.core.security import verify_password, get_password_hash
from app.core.exceptions import (
    UserNotFoundError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    NoFieldsToUpdateError,
    BadRequestError,
    InternalError,
)
from app.core.logging_config import logger
from app.utils.pagination import paginate, search_filter


SEARCH_COLUMNS = (User.username, User.email)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate(self, username: str, password: str) -> User:
        """Return the user for a correct username/password pair"""
        user = await self.db.scalar(select(User).where(User.username == username))
        if user is None or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError()
        return user

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def list_assistants(
        self,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[User], Dict[str, int]]:
        query = select(User).where(User.role == UserRole.ASSISTANT)
        condition = search_filter(search, SEARCH_COLUMNS)
        if condition is not None:
            query = query.where(condition)
        query = query.order_by(User.created_at.desc(), User.id.desc())
        return await paginate(self.db, query, page=page, limit=limit)

    async def _ensure_available(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
        exclude_id: Optional[int] = None
    ) -> None:
        for column, value in ((User.username, username), (User.email, email)):
            if value is None:
                continue
            query = select(User.id).where(column == value)
            if exclude_id is not None:
                query = query.where(User.id != exclude_id)
            if await self.db.scalar(query) is not None:
                raise ConflictError(f"User with this {column.key} already exists", field=column.key)

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Username or email already exists")

    async def create_assistant(self, data: RegisterRequest) -> User:
        """Register a new assistant; supervisors are only created by the seed script"""
        await self._ensure_available(username=data.username, email=data.email)

        flags = {
            capability.value: (
                getattr(data, capability.value)
                if getattr(data, capability.value) is not None
                else default
            )
            for capability, default in DEFAULT_CAPABILITIES.items()
        }
        user = User(
            username=data.username,
            email=data.email,
            hashed_password=get_password_hash(data.password),
            role=UserRole.ASSISTANT,
            **flags
        )
        self.db.add(user)
        await self._commit()
        await self.db.refresh(user)
        return user

    async def create_supervisor(self, username: str, email: str, password: str) -> User:
        await self._ensure_available(username=username, email=email)
        user = User(
            username=username,
            email=email,
            hashed_password=get_password_hash(password),
            role=UserRole.SUPERVISOR,
            **{capability.value: True for capability in Capability}
        )
        self.db.add(user)
        await self._commit()
        await self.db.refresh(user)
        return user

    async def update_profile(self, user_id: int, data: UserUpdate) -> User:
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        if not changes:
            raise NoFieldsToUpdateError()
        for field, value in changes.items():
            if value is None:
                raise BadRequestError(f"{field} cannot be empty", field=field)

        user = await self.get_user(user_id)
        await self._ensure_available(
            username=changes.get("username"),
            email=changes.get("email"),
            exclude_id=user_id
        )
        for field, value in changes.items():
            setattr(user, field, value)
        await self._commit()
        await self.db.refresh(user)
        return user

    async def update_permissions(self, user_id: int, data: PermissionsUpdate) -> User:
        """
        Change an assistant's capability flags.

        Tokens already issued keep the flags they were signed with until the
        user logs in again.
        """
        changes = {key: value for key, value in data.model_dump(exclude_unset=True).items() if value is not None}
        if not changes:
            raise NoFieldsToUpdateError()

        user = await self.get_user(user_id)
        if user.is_supervisor:
            raise ForbiddenError("Cannot modify supervisor permissions")

        for field, value in changes.items():
            setattr(user, field, value)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def delete_user(self, user_id: int) -> User:
        """
        Delete an assistant.

        Their activity entries go with them; tasks and documents they created
        stay, with the author reference cleared.
        """
        user = await self.get_user(user_id)
        if user.is_supervisor:
            raise ForbiddenError("Cannot delete supervisor account")

        try:
            await self.db.execute(update(Task).where(Task.created_by == user_id).values(created_by=None))
            await self.db.execute(update(Document).where(Document.uploaded_by == user_id).values(uploaded_by=None))
            await self.db.execute(delete(ActivityLog).where(ActivityLog.user_id == user_id))
            await self.db.execute(delete(User).where(User.id == user_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.log_error_with_context(e, context="user delete", target_user_id=user_id)
            raise InternalError("Failed to delete user")

        return user
