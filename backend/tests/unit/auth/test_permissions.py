"""
Unit Tests for capability checks
Tests for: single, conjunctive and disjunctive checks, supervisor override
"""
import pytest

from app.core.exceptions import ForbiddenError, MissingCapabilityError
from app.models.user import Capability, UserRole
from app.modules.auth.permissions import (
    has_capability,
    check_capability,
    check_all_capabilities,
    check_any_capability,
    check_supervisor,
)
from app.schemas.auth import TokenClaims


def claims(role=UserRole.ASSISTANT, **flags) -> TokenClaims:
    return TokenClaims(id=1, username='asha', email='asha@example.com', role=role, **flags)


class TestSingleCapability:
    """Test check_capability"""

    @pytest.mark.parametrize("capability", list(Capability))
    def test_flag_set_grants(self, capability):
        check_capability(claims(**{capability.value: True}), capability)

    @pytest.mark.parametrize("capability", list(Capability))
    def test_flag_unset_denies(self, capability):
        with pytest.raises(MissingCapabilityError) as exc_info:
            check_capability(claims(), capability)

        assert exc_info.value.details["missing"] == [capability.value]

    @pytest.mark.parametrize("capability", list(Capability))
    def test_supervisor_holds_everything(self, capability):
        """Supervisor passes even with every stored flag false"""
        supervisor = claims(role=UserRole.SUPERVISOR)

        assert has_capability(supervisor, capability) is True
        check_capability(supervisor, capability)

    def test_other_flags_do_not_help(self):
        assistant = claims(can_view_students=True, can_upload_docs=True, can_manage_users=True)

        with pytest.raises(MissingCapabilityError):
            check_capability(assistant, Capability.DELETE_STUDENT)


class TestAllCapabilities:
    """Test check_all_capabilities"""

    def test_all_present(self):
        check_all_capabilities(
            claims(can_edit_student=True, can_upload_docs=True),
            [Capability.EDIT_STUDENT, Capability.UPLOAD_DOCS]
        )

    def test_reports_exactly_the_missing(self):
        with pytest.raises(MissingCapabilityError) as exc_info:
            check_all_capabilities(
                claims(can_edit_student=True),
                [Capability.EDIT_STUDENT, Capability.UPLOAD_DOCS, Capability.DELETE_STUDENT]
            )

        assert exc_info.value.details == {
            "missing": ["can_upload_docs", "can_delete_student"],
            "any_of": False,
        }

    def test_supervisor(self):
        check_all_capabilities(claims(role=UserRole.SUPERVISOR), list(Capability))


class TestAnyCapability:
    """Test check_any_capability"""

    def test_one_is_enough(self):
        check_any_capability(claims(can_manage_users=True), [Capability.VIEW_STUDENTS, Capability.MANAGE_USERS])

    def test_none_held_lists_alternatives(self):
        with pytest.raises(MissingCapabilityError) as exc_info:
            check_any_capability(
                claims(can_view_students=False),
                [Capability.VIEW_STUDENTS, Capability.MANAGE_USERS]
            )

        assert exc_info.value.details == {
            "missing": ["can_view_students", "can_manage_users"],
            "any_of": True,
        }


class TestSupervisorOnly:

    def test_supervisor_passes(self):
        check_supervisor(claims(role=UserRole.SUPERVISOR))

    def test_assistant_with_every_flag_denied(self):
        """Supervisor-only operations are not reachable through flags"""
        assistant = claims(**{capability.value: True for capability in Capability})

        with pytest.raises(ForbiddenError):
            check_supervisor(assistant)
