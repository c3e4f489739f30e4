from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from app.core.database import get_db
from app.core.exceptions import UnauthenticatedError
from app.core.logging_config import set_user_id
from app.core.security import verify_access_token
from app.models.user import User
from app.schemas.auth import TokenClaims

# auto_error=False so a missing header becomes our own 401 envelope
security = HTTPBearer(auto_error=False)


async def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenClaims:
    """
    Verify the bearer token and return its claims.

    Authorization decisions are made on these claims alone; the credential
    store is not consulted.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Access denied. No token provided.")

    claims = verify_access_token(credentials.credentials)
    set_user_id(str(claims.id))
    return claims


async def get_current_user(
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Load the stored account behind the token (live flags, not the snapshot)"""
    user = await db.scalar(select(User).where(User.id == claims.id))
    if user is None:
        raise UnauthenticatedError("User not found")
    return user
