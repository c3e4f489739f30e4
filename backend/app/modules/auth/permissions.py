"""
Capability checks.

The check_* functions are pure: they look only at the token claims and
either return or raise MissingCapabilityError / ForbiddenError. The
require_* factories wrap them as FastAPI dependencies that also verify the
token first.

Usage:
    @router.delete("/{student_id}")
    async def delete_student(
        student_id: int,
        claims: TokenClaims = Depends(require_capability(Capability.DELETE_STUDENT)),
        db: AsyncSession = Depends(get_db)
    ):
        ...
"""
from fastapi import Depends
from typing import Iterable, List

from app.core.exceptions import ForbiddenError, MissingCapabilityError
from app.models.user import Capability
from app.modules.auth.dependencies import get_current_claims
from app.schemas.auth import TokenClaims


def has_capability(claims: TokenClaims, capability: Capability) -> bool:
    """Supervisors hold everything; assistants hold what their flags say"""
    return claims.is_supervisor or claims.flag(capability)


def check_capability(claims: TokenClaims, capability: Capability) -> None:
    if not has_capability(claims, capability):
        raise MissingCapabilityError([capability.value])


def check_all_capabilities(claims: TokenClaims, capabilities: Iterable[Capability]) -> None:
    """Conjunctive check; the error lists exactly the missing capabilities"""
    missing: List[str] = [c.value for c in capabilities if not has_capability(claims, c)]
    if missing:
        raise MissingCapabilityError(missing)


def check_any_capability(claims: TokenClaims, capabilities: Iterable[Capability]) -> None:
    """Disjunctive check; the error lists every capability that would have sufficed"""
    capabilities = list(capabilities)
    if not any(has_capability(claims, c) for c in capabilities):
        raise MissingCapabilityError([c.value for c in capabilities], any_of=True)


def check_supervisor(claims: TokenClaims) -> None:
    if not claims.is_supervisor:
        raise ForbiddenError("Access denied. Supervisor only.")


def require_capability(capability: Capability):
    """Dependency factory: authenticated and holding ``capability``"""
    async def capability_checker(
        claims: TokenClaims = Depends(get_current_claims)
    ) -> TokenClaims:
        check_capability(claims, capability)
        return claims

    return capability_checker


def require_all_capabilities(capabilities: Iterable[Capability]):
    capabilities = list(capabilities)

    async def all_checker(
        claims: TokenClaims = Depends(get_current_claims)
    ) -> TokenClaims:
        check_all_capabilities(claims, capabilities)
        return claims

    return all_checker


def require_any_capability(capabilities: Iterable[Capability]):
    capabilities = list(capabilities)

    async def any_checker(
        claims: TokenClaims = Depends(get_current_claims)
    ) -> TokenClaims:
        check_any_capability(claims, capabilities)
        return claims

    return any_checker


async def require_supervisor(
    claims: TokenClaims = Depends(get_current_claims)
) -> TokenClaims:
    check_supervisor(claims)
    return claims


# Pre-built dependencies for the routes
require_view_students = require_capability(Capability.VIEW_STUDENTS)
require_edit_student = require_capability(Capability.EDIT_STUDENT)
require_delete_student = require_capability(Capability.DELETE_STUDENT)
require_upload_docs = require_capability(Capability.UPLOAD_DOCS)
require_manage_users = require_capability(Capability.MANAGE_USERS)
require_activity_access = require_any_capability([Capability.VIEW_STUDENTS, Capability.MANAGE_USERS])
