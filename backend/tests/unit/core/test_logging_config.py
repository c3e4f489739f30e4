"""
Unit Tests for structured logging
"""
import json
import logging

from app.core.logging_config import (
    JSONFormatter,
    TextFormatter,
    StudentTrackLogger,
    logger,
    request_id_var,
    set_request_id,
)


class CapturingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def capture() -> CapturingHandler:
    handler = CapturingHandler()
    logger.addHandler(handler)
    return handler


class TestEvents:

    def test_logger_class(self):
        assert isinstance(logger, StudentTrackLogger)

    def test_event_fields_on_record(self):
        handler = capture()
        try:
            logger.event(logging.WARNING, "Slow request", "slow_request", http_path="/api/students")
        finally:
            logger.removeHandler(handler)

        record = handler.records[-1]
        assert record.levelno == logging.WARNING
        assert record.fields == {"event_type": "slow_request", "http_path": "/api/students"}

    def test_failed_auth_is_warning(self):
        handler = capture()
        try:
            logger.log_auth_event("login", success=False, username="sam", reason="bad password")
        finally:
            logger.removeHandler(handler)

        record = handler.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "Auth login: failed - sam - bad password"
        assert record.fields["auth_success"] is False

    def test_error_with_context(self):
        handler = capture()
        try:
            logger.log_error_with_context(ValueError("boom"), context="document upload", student_id=3)
        finally:
            logger.removeHandler(handler)

        record = handler.records[-1]
        assert record.getMessage() == "Error in document upload: ValueError: boom"
        assert record.fields["student_id"] == 3
        assert record.exc_info is not None


class TestFormatters:

    def make_record(self, **fields) -> logging.LogRecord:
        record = logging.LogRecord("studenttrack", logging.INFO, __file__, 1, "Stored 2 document(s)", None, None)
        if fields:
            record.fields = fields
        return record

    def test_json_line(self):
        token = request_id_var.set("abc12345")
        try:
            line = JSONFormatter().format(self.make_record(event_type="upload", student_id=7))
        finally:
            request_id_var.reset(token)

        entry = json.loads(line)
        assert entry["message"] == "Stored 2 document(s)"
        assert entry["request_id"] == "abc12345"
        assert entry["user_id"] is None
        assert entry["student_id"] == 7

    def test_text_line_appends_fields(self):
        set_request_id("")
        line = TextFormatter().format(self.make_record(event_type="upload", student_id=7))

        assert "[-] [-] Stored 2 document(s)" in line
        assert line.endswith("event_type=upload student_id=7")

    def test_text_line_without_fields(self):
        line = TextFormatter().format(self.make_record())

        assert line.endswith("Stored 2 document(s)")
