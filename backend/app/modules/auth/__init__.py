# Authentication module

from app.modules.auth.dependencies import (
    get_current_claims,
    get_current_user,
)

from app.modules.auth.permissions import (
    has_capability,
    check_capability,
    check_all_capabilities,
    check_any_capability,
    check_supervisor,
    require_capability,
    require_all_capabilities,
    require_any_capability,
    require_supervisor,
)

__all__ = [
    "get_current_claims",
    "get_current_user",
    "has_capability",
    "check_capability",
    "check_all_capabilities",
    "check_any_capability",
    "check_supervisor",
    "require_capability",
    "require_all_capabilities",
    "require_any_capability",
    "require_supervisor",
]
