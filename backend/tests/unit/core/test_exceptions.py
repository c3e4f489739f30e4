"""
Unit Tests for the error hierarchy and its JSON envelope
"""
from app.core.exceptions import (
    StudentTrackError,
    BadRequestError,
    NoFieldsToUpdateError,
    UnauthenticatedError,
    InvalidCredentialsError,
    ForbiddenError,
    MissingCapabilityError,
    StudentNotFoundError,
    BlobNotFoundError,
    ConflictError,
    PayloadTooLargeError,
    InternalError,
    StorageError,
    error_response,
)


class TestStatusCodes:
    """Each error kind maps to one HTTP status"""

    def test_status_codes(self):
        assert BadRequestError("x").status_code == 400
        assert NoFieldsToUpdateError().status_code == 400
        assert UnauthenticatedError().status_code == 401
        assert InvalidCredentialsError().status_code == 401
        assert ForbiddenError().status_code == 403
        assert MissingCapabilityError(["can_edit_student"]).status_code == 403
        assert StudentNotFoundError(1).status_code == 404
        assert ConflictError("x").status_code == 409
        assert PayloadTooLargeError("a.pdf", 10).status_code == 413
        assert InternalError().status_code == 500
        assert StorageError("disk full").status_code == 500

    def test_all_share_base_class(self):
        for error in (BadRequestError("x"), ForbiddenError(), StudentNotFoundError(1), StorageError("x")):
            assert isinstance(error, StudentTrackError)


class TestErrorEnvelope:
    """Test error_response() output"""

    def test_envelope_shape(self):
        body = error_response(ConflictError("Student with this email already exists", field="email"))

        assert body == {
            "success": False,
            "code": "CONFLICT",
            "message": "Student with this email already exists",
            "details": {"field": "email"},
        }

    def test_empty_details_omitted(self):
        body = error_response(InvalidCredentialsError())

        assert body == {"success": False, "code": "INVALID_CREDENTIALS", "message": "Invalid credentials"}

    def test_not_found_message(self):
        error = StudentNotFoundError(42)

        assert error.message == "Student not found"
        assert error.code == "STUDENT_NOT_FOUND"
        assert error.details["resource_id"] == 42

    def test_missing_blob_message(self):
        assert BlobNotFoundError(3).message == "File not found on server"

    def test_missing_capability_lists_flags(self):
        error = MissingCapabilityError(["can_edit_student", "can_delete_student"])

        assert error.code == "MISSING_PERMISSION"
        assert error.details == {"missing": ["can_edit_student", "can_delete_student"], "any_of": False}
        assert "can_edit_student" in error.message

    def test_no_fields_to_update(self):
        error = NoFieldsToUpdateError()

        assert error.message == "No fields to update"
        assert error.code == "NO_FIELDS_TO_UPDATE"
