"""
Authentication endpoints: login, assistant registration, current profile.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import InvalidCredentialsError
from app.core.logging_config import logger, set_user_id
from app.core.rate_limiter import login_rate_limit
from app.core.security import create_user_token
from app.models.activity_log import EntityType
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.modules.auth.permissions import require_supervisor
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, TokenClaims
from app.schemas.user import UserEnvelope, UserResponse
from app.services.activity_recorder import ActivityRecorder
from app.services.user_service import UserService

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
@login_rate_limit()
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange username and password for a 24 hour access token"""
    client_ip = request.client.host if request.client else "unknown"

    try:
        user = await UserService(db).authenticate(credentials.username, credentials.password)
    except InvalidCredentialsError:
        logger.log_auth_event(
            event="login",
            success=False,
            username=credentials.username,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise

    set_user_id(str(user.id))
    token = create_user_token(user)
    logger.log_auth_event(event="login", success=True, username=user.username, client_ip=client_ip)

    await ActivityRecorder(db).record(user.id, "Logged in", EntityType.USER, user.id)

    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/register", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    claims: TokenClaims = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db)
):
    """Create an assistant account (supervisor only)"""
    user = await UserService(db).create_assistant(data)
    logger.log_auth_event(event="register", success=True, username=user.username, created_by=claims.id)

    await ActivityRecorder(db).record(
        claims.id, f"Created new assistant: {user.username}", EntityType.USER, user.id
    )

    return UserEnvelope(message="Assistant created successfully", user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserEnvelope)
async def get_me(current_user: User = Depends(get_current_user)):
    """Stored profile of the caller, including current (not token) permissions"""
    return UserEnvelope(user=UserResponse.model_validate(current_user))
