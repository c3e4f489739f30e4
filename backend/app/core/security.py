from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from pydantic import ValidationError
import bcrypt

from app.core.config import settings
from app.core.exceptions import InvalidTokenError, TokenExpiredError
from app.models.user import User, Capability
from app.schemas.auth import TokenClaims


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def _utcnow(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None
) -> str:
    """
    Create JWT access token.

    ``iat`` and ``exp`` are written as (fractional) epoch seconds so the
    lifetime is exactly ``expires_delta``.
    """
    to_encode = data.copy()
    issued_at = _utcnow(now)

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = issued_at + expires_delta

    to_encode.update({
        "iat": issued_at.timestamp(),
        "exp": expire.timestamp(),
        "type": "access",
    })
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Decode and verify JWT token.

    A token is valid on [iat, exp) and expired from ``exp`` on, so expiry is
    checked here rather than by python-jose, which accepts a token at ``exp``.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": False, "verify_iat": False}
        )
    except JWTError:
        raise InvalidTokenError()

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)):
        raise InvalidTokenError()
    if _utcnow(now).timestamp() >= exp:
        raise TokenExpiredError()

    return payload


def create_user_token(user: User, now: Optional[datetime] = None) -> str:
    """Issue an access token carrying a snapshot of the user's capability flags"""
    data: Dict[str, Any] = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
    }
    for capability in Capability:
        data[capability.value] = bool(getattr(user, capability.value))
    return create_access_token(data, now=now)


def verify_access_token(token: str, now: Optional[datetime] = None) -> TokenClaims:
    """Verify a bearer token and return its claims"""
    payload = decode_token(token, now=now)

    if payload.get("type") != "access":
        raise InvalidTokenError()

    try:
        return TokenClaims(
            id=int(payload["sub"]),
            username=payload["username"],
            email=payload["email"],
            role=payload["role"],
            **{capability.value: bool(payload.get(capability.value, False)) for capability in Capability}
        )
    except (KeyError, TypeError, ValueError, ValidationError):
        raise InvalidTokenError()
