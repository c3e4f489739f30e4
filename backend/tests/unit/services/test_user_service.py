"""
Unit Tests for User Service
Tests for: authentication, assistant registration, permissions, deletion
"""
import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, ForbiddenError, InvalidCredentialsError, NoFieldsToUpdateError
from app.models.activity_log import ActivityLog, EntityType
from app.models.student import Student
from app.models.task import Task
from app.models.user import User, UserRole
from app.schemas.auth import RegisterRequest
from app.schemas.user import PermissionsUpdate, UserUpdate
from app.services.activity_recorder import ActivityRecorder
from app.services.user_service import UserService

from conftest import TEST_PASSWORD


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_correct_password(self, db_session: AsyncSession, assistant_user: User):
        user = await UserService(db_session).authenticate(assistant_user.username, TEST_PASSWORD)

        assert user.id == assistant_user.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session: AsyncSession, assistant_user: User):
        with pytest.raises(InvalidCredentialsError):
            await UserService(db_session).authenticate(assistant_user.username, "wrongpassword")

    @pytest.mark.asyncio
    async def test_unknown_user_same_error(self, db_session: AsyncSession):
        with pytest.raises(InvalidCredentialsError):
            await UserService(db_session).authenticate("nobody", TEST_PASSWORD)


class TestCreateAssistant:

    @pytest.mark.asyncio
    async def test_defaults_to_view_only(self, db_session: AsyncSession):
        user = await UserService(db_session).create_assistant(
            RegisterRequest(username="asha", email="asha@example.com", password="secret1")
        )

        assert user.role == UserRole.ASSISTANT
        assert user.can_view_students is True
        assert user.can_edit_student is False
        assert user.can_delete_student is False
        assert user.can_upload_docs is False
        assert user.can_manage_users is False
        assert user.hashed_password != "secret1"

    @pytest.mark.asyncio
    async def test_explicit_flags(self, db_session: AsyncSession):
        user = await UserService(db_session).create_assistant(
            RegisterRequest(
                username="ravi",
                email="ravi@example.com",
                password="secret1",
                can_view_students=False,
                can_upload_docs=True,
            )
        )

        assert user.can_view_students is False
        assert user.can_upload_docs is True

    @pytest.mark.asyncio
    async def test_duplicate_username(self, db_session: AsyncSession, assistant_user: User):
        with pytest.raises(ConflictError) as exc_info:
            await UserService(db_session).create_assistant(
                RegisterRequest(username=assistant_user.username, email="other@example.com", password="secret1")
            )

        assert exc_info.value.details["field"] == "username"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, db_session: AsyncSession, assistant_user: User):
        with pytest.raises(ConflictError):
            await UserService(db_session).create_assistant(
                RegisterRequest(username="brandnew", email=assistant_user.email, password="secret1")
            )


class TestPermissions:

    @pytest.mark.asyncio
    async def test_update_subset(self, db_session: AsyncSession, assistant_user: User):
        user = await UserService(db_session).update_permissions(
            assistant_user.id, PermissionsUpdate(can_edit_student=True)
        )

        assert user.can_edit_student is True
        assert user.can_view_students is True

    @pytest.mark.asyncio
    async def test_supervisor_flags_untouchable(self, db_session: AsyncSession, supervisor_user: User):
        with pytest.raises(ForbiddenError):
            await UserService(db_session).update_permissions(
                supervisor_user.id, PermissionsUpdate(can_manage_users=False)
            )

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, db_session: AsyncSession, assistant_user: User):
        with pytest.raises(NoFieldsToUpdateError):
            await UserService(db_session).update_permissions(assistant_user.id, PermissionsUpdate())


class TestUpdateProfile:

    @pytest.mark.asyncio
    async def test_rename(self, db_session: AsyncSession, assistant_user: User):
        user = await UserService(db_session).update_profile(assistant_user.id, UserUpdate(username="renamed"))

        assert user.username == "renamed"

    @pytest.mark.asyncio
    async def test_rename_to_taken(self, db_session: AsyncSession, assistant_user: User, supervisor_user: User):
        with pytest.raises(ConflictError):
            await UserService(db_session).update_profile(
                assistant_user.id, UserUpdate(username=supervisor_user.username)
            )


class TestDeleteUser:

    @pytest.mark.asyncio
    async def test_supervisor_cannot_be_deleted(self, db_session: AsyncSession, supervisor_user: User):
        with pytest.raises(ForbiddenError):
            await UserService(db_session).delete_user(supervisor_user.id)

    @pytest.mark.asyncio
    async def test_authored_rows_survive(
        self, db_session: AsyncSession, assistant_user: User, test_student: Student, make_task
    ):
        """Tasks stay with their author cleared; the assistant's own activity goes"""
        assistant_id = assistant_user.id
        task = await make_task(test_student, created_by=assistant_id)
        await ActivityRecorder(db_session).record(assistant_id, "Logged in", EntityType.USER, assistant_id)

        await UserService(db_session).delete_user(assistant_id)

        assert await db_session.scalar(select(func.count(User.id)).where(User.id == assistant_id)) == 0
        assert await db_session.scalar(
            select(func.count(ActivityLog.id)).where(ActivityLog.user_id == assistant_id)
        ) == 0
        author = await db_session.scalar(select(Task.created_by).where(Task.id == task.id))
        assert author is None
