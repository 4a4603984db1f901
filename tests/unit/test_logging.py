"""Unit tests for logging_audit module."""

import logging
import re

import pytest

from patient_records.logging_audit import (
    PIIRedactingFormatter,
    configure_logging,
    get_logger,
    log_audit_event,
    log_transaction,
)
from patient_records.logging_audit.audit import MAX_LOGGED_BODY


def make_record(message: str) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)


class TestConfigureLogging:
    """Test logging configuration."""

    def test_configure_logging_creates_file(self, tmp_path):
        """Test logging configuration creates log file."""
        # Arrange
        log_file = tmp_path / "test.log"

        # Act
        configure_logging(level="INFO", log_file=log_file, redact_pii=False)
        get_logger(__name__).info("Test message")

        # Assert
        assert log_file.exists()
        assert "Test message" in log_file.read_text()

    def test_configure_logging_sets_console_level(self, tmp_path):
        """Test console handler uses specified log level."""
        configure_logging(level="WARNING", log_file=tmp_path / "test.log", redact_pii=False)

        root_logger = logging.getLogger()
        console_handlers = [
            h for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler) and not hasattr(h, "baseFilename")
        ]
        assert console_handlers[-1].level == logging.WARNING

    def test_configure_logging_file_level_debug(self, tmp_path):
        """Test file handler always uses DEBUG level."""
        log_file = tmp_path / "test.log"

        configure_logging(level="ERROR", log_file=log_file, redact_pii=False)
        get_logger(__name__).debug("Debug message")

        assert "Debug message" in log_file.read_text()

    def test_configure_logging_creates_directory(self, tmp_path):
        log_file = tmp_path / "nested" / "dir" / "test.log"

        configure_logging(level="INFO", log_file=log_file, redact_pii=False)

        assert log_file.parent.is_dir()

    def test_configure_logging_invalid_level_raises_error(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="INVALID", log_file=tmp_path / "test.log")

    def test_configure_logging_environment_variable(self, tmp_path, monkeypatch):
        """Test PATIENT_RECORDS_LOG_FILE is used when no log file is given."""
        # Arrange
        env_log_file = tmp_path / "env.log"
        monkeypatch.setenv("PATIENT_RECORDS_LOG_FILE", str(env_log_file))

        # Act
        configure_logging(level="INFO", log_file=None, redact_pii=False)
        get_logger(__name__).info("Env message")

        # Assert
        assert "Env message" in env_log_file.read_text()

    def test_configure_logging_idempotent(self, tmp_path):
        """Test repeated configuration does not duplicate handlers."""
        log_file = tmp_path / "test.log"

        configure_logging(level="INFO", log_file=log_file)
        configure_logging(level="DEBUG", log_file=log_file)
        get_logger(__name__).info("Once")

        assert log_file.read_text().count("Once") == 1

    def test_configure_logging_log_format(self, tmp_path):
        """Test format: timestamp - module - level - message."""
        log_file = tmp_path / "test.log"

        configure_logging(level="INFO", log_file=log_file)
        get_logger(__name__).info("Test message")

        pattern = r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3} - .+ - INFO - Test message"
        assert re.search(pattern, log_file.read_text())

    def test_configure_logging_rotation_config(self, tmp_path):
        configure_logging(level="INFO", log_file=tmp_path / "test.log")

        file_handler = next(
            h for h in logging.getLogger().handlers if hasattr(h, "maxBytes")
        )
        assert file_handler.maxBytes == 10 * 1024 * 1024
        assert file_handler.backupCount == 5

    def test_urllib3_kept_quiet(self, tmp_path):
        configure_logging(level="DEBUG", log_file=tmp_path / "test.log")
        assert logging.getLogger("urllib3").level == logging.WARNING


class TestPIIRedactingFormatter:
    """Test redaction of names and credentials."""

    @pytest.fixture
    def formatter(self) -> PIIRedactingFormatter:
        return PIIRedactingFormatter(fmt="%(message)s", redact_pii=True)

    def test_redact_bearer_token(self, formatter):
        output = formatter.format(make_record("Authorization: Bearer eyJhbGci.abc-123"))
        assert output == "Authorization: Bearer [TOKEN-REDACTED]"

    def test_redact_password_assignment(self, formatter):
        assert formatter.format(make_record("password=hunter2")) == (
            "password=[PASSWORD-REDACTED]"
        )

    def test_redact_password_json(self, formatter):
        output = formatter.format(make_record('{"username": "admin", "password": "hunter2"}'))
        assert "hunter2" not in output
        assert "[PASSWORD-REDACTED]" in output

    def test_redact_name_field(self, formatter):
        output = formatter.format(make_record("Saved name=Ada Shaw | id=3"))
        assert output == "Saved name=[NAME-REDACTED] | id=3"

    def test_redact_json_name_fields(self, formatter):
        output = formatter.format(
            make_record('{"firstName": "Ada", "lastName": "Shaw", "fatherName": "Tom", "age": 34}')
        )
        assert "Ada" not in output
        assert "Shaw" not in output
        assert "Tom" not in output
        assert '"age": 34' in output

    def test_redact_patient_label(self, formatter):
        output = formatter.format(make_record("Patient: John Doe loaded"))
        assert output == "Patient: [NAME-REDACTED] loaded"

    def test_no_redaction_when_disabled(self):
        formatter = PIIRedactingFormatter(fmt="%(message)s", redact_pii=False)
        message = '{"firstName": "Ada"} Bearer abc password=x'
        assert formatter.format(make_record(message)) == message


class TestLogAuditEvent:
    """Test audit trail logging."""

    def test_log_audit_event_success(self, tmp_path):
        # Arrange
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)

        # Act
        log_audit_event("PATIENT_SAVED", {
            "patient_id": 7,
            "mode": "create",
            "status": "success",
            "duration": 0.5,
            "health_type": "Cardiac",
        })

        # Assert
        content = log_file.read_text()
        assert "AUDIT [PATIENT_SAVED] | status=success | patient_id=7 | mode=create" in content
        assert "duration=0.50s" in content
        assert "health_type=Cardiac" in content
        assert " - INFO - " in content

    def test_log_audit_event_failure_is_error(self, tmp_path):
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)

        log_audit_event("PATIENT_SAVE_FAILED", {
            "status": "failure",
            "step": "address",
            "error_message": "HTTP 500: boom",
        })

        content = log_file.read_text()
        assert " - ERROR - " in content
        assert "step=address" in content
        assert "error_message=HTTP 500: boom" in content

    def test_log_audit_event_adds_correlation_id(self, tmp_path):
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)

        log_audit_event("PATIENT_DELETED", {"status": "success"})

        assert "correlation_id=" in log_file.read_text()

    def test_log_audit_event_preserves_custom_correlation_id(self, tmp_path):
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)

        log_audit_event("LOGIN", {"status": "success", "correlation_id": "abc-123"})

        assert "correlation_id=abc-123" in log_file.read_text()


class TestLogTransaction:
    """Test REST transaction logging."""

    def test_log_transaction_summary_and_bodies(self, tmp_path):
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)

        log_transaction(
            "POST",
            "http://localhost:5000/api/Patients",
            201,
            request_body='{"firstName": "Ada"}',
            response_body='{"patientId": 1}',
            elapsed_ms=12,
        )

        content = log_file.read_text()
        assert "TRANSACTION [POST http://localhost:5000/api/Patients]" in content
        assert "status=201" in content
        assert "elapsed=12ms" in content
        assert '{"patientId": 1}' in content

    def test_log_transaction_without_response(self, tmp_path):
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)

        log_transaction("GET", "http://localhost:5000/api/Patients", None)

        assert "status=no-response" in log_file.read_text()

    def test_log_transaction_truncates_bodies(self, tmp_path):
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)

        log_transaction("GET", "http://x/api/Patients", 200, response_body="x" * (MAX_LOGGED_BODY + 500))

        assert "x" * MAX_LOGGED_BODY in log_file.read_text()
        assert "x" * (MAX_LOGGED_BODY + 1) not in log_file.read_text()
