"""
StudentTrack - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator, Callable
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from faker import Faker

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing-only-000'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['LOG_FILE'] = ''
os.environ['UPLOAD_PATH'] = tempfile.mkdtemp(prefix='studenttrack-uploads-')

from app.main import app
from app.core.database import Database, get_db
from app.core.security import get_password_hash, create_user_token
from app.models.user import User, UserRole, Capability, DEFAULT_CAPABILITIES
from app.models.student import Student, StudentStatus
from app.models.task import Task, TaskPriority
from app.modules.storage import BlobStorage

fake = Faker()

TEST_PASSWORD = 'testpassword123'


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Fresh sqlite database file per test"""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    database.connect()
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with database.session() as session:
        yield session


@pytest.fixture
def blob_storage(tmp_path) -> BlobStorage:
    """Blob storage in a temporary directory with a 1MB file limit"""
    return BlobStorage(base_path=str(tmp_path / 'uploads'), max_file_size=1024 * 1024, max_files=10)


@pytest.fixture
async def client(
    database: Database,
    db_session: AsyncSession,
    blob_storage: BlobStorage
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client sharing the test session and storage"""
    async def override_get_db():
        yield db_session

    app.state.database = database
    app.state.blob_storage = blob_storage
    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, role: UserRole, **flags) -> User:
    if role == UserRole.SUPERVISOR:
        values = {capability.value: True for capability in Capability}
    else:
        values = {capability.value: default for capability, default in DEFAULT_CAPABILITIES.items()}
    values.update(flags)

    user = User(
        username=fake.unique.user_name(),
        email=fake.unique.email(),
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role,
        **values
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def supervisor_user(db_session: AsyncSession) -> User:
    """Create the supervisor account"""
    return await _create_user(db_session, UserRole.SUPERVISOR)


@pytest.fixture
async def assistant_user(db_session: AsyncSession) -> User:
    """Assistant with the default flags (view only)"""
    return await _create_user(db_session, UserRole.ASSISTANT)


@pytest.fixture
def make_assistant(db_session: AsyncSession) -> Callable:
    """Factory for assistants with specific flags, e.g. make_assistant(can_edit_student=True)"""
    async def _make(**flags) -> User:
        return await _create_user(db_session, UserRole.ASSISTANT, **flags)
    return _make


def headers_for(user: User) -> dict:
    """Bearer header for a freshly issued token"""
    return {'Authorization': f'Bearer {create_user_token(user)}'}


@pytest.fixture
def supervisor_headers(supervisor_user: User) -> dict:
    return headers_for(supervisor_user)


@pytest.fixture
def assistant_headers(assistant_user: User) -> dict:
    return headers_for(assistant_user)


@pytest.fixture
def make_student(db_session: AsyncSession) -> Callable:
    """Factory for students stored directly in the database"""
    async def _make(**overrides) -> Student:
        values = {
            'name': fake.name(),
            'email': fake.unique.email(),
            'department': fake.random_element(['Computer Science', 'Mathematics', 'Physics']),
            'status': StudentStatus.ACTIVE,
            'gpa': 3.5,
        }
        values.update(overrides)
        student = Student(**values)
        db_session.add(student)
        await db_session.commit()
        await db_session.refresh(student)
        return student
    return _make


@pytest.fixture
async def test_student(make_student: Callable) -> Student:
    return await make_student()


@pytest.fixture
def make_task(db_session: AsyncSession) -> Callable:
    async def _make(student: Student, **overrides) -> Task:
        values = {
            'student_id': student.id,
            'title': fake.sentence(nb_words=4),
            'priority': TaskPriority.MEDIUM,
        }
        values.update(overrides)
        task = Task(**values)
        db_session.add(task)
        await db_session.commit()
        await db_session.refresh(task)
        return task
    return _make
