"""
Unit Tests for Authentication API Endpoints
"""
import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient
from faker import Faker
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.rate_limiter import limiter
from app.core.security import create_user_token
from app.models.activity_log import ActivityLog
from app.models.user import User

from conftest import TEST_PASSWORD, headers_for

fake = Faker()


class TestLogin:
    """Test login endpoint"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, assistant_user: User):
        response = await client.post('/api/auth/login', json={
            'username': assistant_user.username,
            'password': TEST_PASSWORD
        })

        assert response.status_code == 200
        data = response.json()
        assert data['success'] is True
        assert data['token']
        assert data['user']['username'] == assistant_user.username
        assert data['user']['role'] == 'assistant'
        assert 'hashed_password' not in data['user']

    @pytest.mark.asyncio
    async def test_login_records_activity(self, client: AsyncClient, db_session: AsyncSession, assistant_user: User):
        await client.post('/api/auth/login', json={
            'username': assistant_user.username,
            'password': TEST_PASSWORD
        })

        entry = await db_session.scalar(select(ActivityLog))
        assert entry.action == 'Logged in'
        assert entry.user_id == assistant_user.id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, assistant_user: User):
        response = await client.post('/api/auth/login', json={
            'username': assistant_user.username,
            'password': 'wrongpassword'
        })

        assert response.status_code == 401
        data = response.json()
        assert data['success'] is False
        assert data['code'] == 'INVALID_CREDENTIALS'
        assert data['message'] == 'Invalid credentials'

    @pytest.mark.asyncio
    async def test_login_unknown_user(self, client: AsyncClient):
        response = await client.post('/api/auth/login', json={
            'username': 'nobody',
            'password': 'whatever'
        })

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid credentials'

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, client: AsyncClient):
        response = await client.post('/api/auth/login', json={'username': 'someone'})

        assert response.status_code == 400
        data = response.json()
        assert data['success'] is False
        assert data['code'] == 'BAD_REQUEST'
        assert 'password' in data['message']

    @pytest.mark.asyncio
    async def test_login_rate_limited(self, client: AsyncClient):
        """Sixth attempt within a minute is refused"""
        limiter.enabled = True
        limiter.reset()
        try:
            statuses = []
            for _ in range(6):
                response = await client.post('/api/auth/login', json={
                    'username': 'nobody',
                    'password': 'wrong'
                })
                statuses.append(response.status_code)
        finally:
            limiter.enabled = False
            limiter.reset()

        assert statuses[:5] == [401] * 5
        assert statuses[5] == 429
        assert response.json()['code'] == 'RATE_LIMITED'


class TestCurrentUser:
    """Test /auth/me"""

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, assistant_user: User, assistant_headers: dict):
        response = await client.get('/api/auth/me', headers=assistant_headers)

        assert response.status_code == 200
        user = response.json()['user']
        assert user['id'] == assistant_user.id
        assert user['email'] == assistant_user.email
        assert user['can_view_students'] is True

    @pytest.mark.asyncio
    async def test_no_token(self, client: AsyncClient):
        response = await client.get('/api/auth/me')

        assert response.status_code == 401
        assert response.json()['message'] == 'Access denied. No token provided.'

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get('/api/auth/me', headers={'Authorization': 'Bearer invalid-token'})

        assert response.status_code == 401
        assert response.json()['code'] == 'INVALID_TOKEN'

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, assistant_user: User):
        issued = datetime.now(timezone.utc) - timedelta(days=2)
        token = create_user_token(assistant_user, now=issued)

        response = await client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401
        assert response.json()['code'] == 'TOKEN_EXPIRED'


class TestRegister:
    """Test assistant registration"""

    @pytest.mark.asyncio
    async def test_supervisor_registers_assistant(self, client: AsyncClient, supervisor_headers: dict):
        response = await client.post('/api/auth/register', headers=supervisor_headers, json={
            'username': 'newassistant',
            'email': 'newassistant@example.com',
            'password': 'secret123'
        })

        assert response.status_code == 201
        user = response.json()['user']
        assert user['role'] == 'assistant'
        assert user['can_view_students'] is True
        assert user['can_edit_student'] is False

    @pytest.mark.asyncio
    async def test_registration_logged(self, client: AsyncClient, db_session: AsyncSession, supervisor_headers: dict):
        await client.post('/api/auth/register', headers=supervisor_headers, json={
            'username': 'logged',
            'email': 'logged@example.com',
            'password': 'secret123'
        })

        entry = await db_session.scalar(select(ActivityLog))
        assert entry.action == 'Created new assistant: logged'

    @pytest.mark.asyncio
    async def test_assistant_cannot_register(self, client: AsyncClient, make_assistant):
        manager = await make_assistant(can_manage_users=True)

        response = await client.post('/api/auth/register', headers=headers_for(manager), json={
            'username': 'sneaky',
            'email': 'sneaky@example.com',
            'password': 'secret123'
        })

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_duplicate_username(self, client: AsyncClient, supervisor_headers: dict, assistant_user: User):
        response = await client.post('/api/auth/register', headers=supervisor_headers, json={
            'username': assistant_user.username,
            'email': fake.unique.email(),
            'password': 'secret123'
        })

        assert response.status_code == 409
        assert response.json()['code'] == 'CONFLICT'

    @pytest.mark.asyncio
    async def test_short_password(self, client: AsyncClient, supervisor_headers: dict):
        response = await client.post('/api/auth/register', headers=supervisor_headers, json={
            'username': 'shorty',
            'email': 'shorty@example.com',
            'password': '123'
        })

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_email(self, client: AsyncClient, supervisor_headers: dict):
        response = await client.post('/api/auth/register', headers=supervisor_headers, json={
            'username': 'bademail',
            'email': 'not-an-email',
            'password': 'secret123'
        })

        assert response.status_code == 400
