"""Tests for logging configuration and utilities."""
import json
import logging
import logging.handlers

import structlog

from jobmatch_core.core.config import Settings
from jobmatch_core.core.logging import (
    CustomJsonFormatter,
    SensitiveDataFilter,
    _redact_processor,
    get_logger,
    log_context,
    setup_logging,
)


def test_sensitive_data_filter():
    """Test sensitive data filtering."""
    filter_ = SensitiveDataFilter()

    data = {
        "username": "test",
        "password": "secret",
        "api_key": "key123",
        "raw_text": "Full posting body",
        "nested": {
            "token": "abc",
            "safe": "visible"
        },
        "list": [
            {"secret": "hidden"},
            {"visible": "shown"}
        ]
    }

    filtered = filter_._filter_dict(data)

    assert filtered["username"] == "test"
    assert filtered["password"] == "[REDACTED]"
    assert filtered["api_key"] == "[REDACTED]"
    assert filtered["raw_text"] == "[REDACTED]"
    assert filtered["nested"]["token"] == "[REDACTED]"
    assert filtered["nested"]["safe"] == "visible"
    assert filtered["list"][0]["secret"] == "[REDACTED]"
    assert filtered["list"][1]["visible"] == "shown"


def test_sensitive_data_filter_extra_fields():
    """Test configured fields are redacted as well."""
    filter_ = SensitiveDataFilter(extra_fields=["Email"])

    filtered = filter_._filter_dict({"email": "a@b.c", "job_id": "job-1"})

    assert filtered["email"] == "[REDACTED]"
    assert filtered["job_id"] == "job-1"


def test_custom_json_formatter():
    """Test custom JSON formatter."""
    formatter = CustomJsonFormatter(environment="test", version="1.0.0")

    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="Test message",
        args=(),
        exc_info=None
    )

    data = json.loads(formatter.format(record))

    assert "timestamp" in data
    assert data["level"] == "INFO"
    assert data["logger"] == "test"
    assert data["environment"] == "test"
    assert data["message"] == "Test message"


def test_custom_json_formatter_merges_structlog_payload():
    """Test JSON rendered events are merged into the record."""
    formatter = CustomJsonFormatter()

    record = logging.LogRecord(
        name="jobmatch_core.services.scorer",
        level=logging.INFO,
        pathname="scorer.py",
        lineno=1,
        msg=json.dumps({"event": "Job scored", "job_id": "job-1"}),
        args=(),
        exc_info=None
    )

    data = json.loads(formatter.format(record))

    assert data["event"] == "Job scored"
    assert data["job_id"] == "job-1"


def test_redact_processor():
    """Test the structlog processor redacts sensitive keys."""
    redact = _redact_processor(["salary_expectations"])

    event = redact(None, "info", {"event": "x", "token": "t", "salary_expectations": {"min": 1}})

    assert event["event"] == "x"
    assert event["token"] == "[REDACTED]"
    assert event["salary_expectations"] == "[REDACTED]"


def test_setup_logging(tmp_path):
    """Test logging setup with a file handler."""
    settings = Settings(
        _env_file=None,
        LOG_LEVEL="DEBUG",
        LOG_JSON=True,
        LOG_FILE="test.log",
        LOG_DIR=tmp_path,
    )

    try:
        setup_logging(settings)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
        assert (tmp_path / "test.log").exists()
    finally:
        structlog.reset_defaults()
        for handler in logging.getLogger().handlers[:]:
            handler.close()
            logging.getLogger().removeHandler(handler)


def test_log_context():
    """Test log context binds values only while it is active."""
    with log_context(user_id="user-1", job_id="job-1"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["user_id"] == "user-1"
        assert bound["job_id"] == "job-1"

    assert "user_id" not in structlog.contextvars.get_contextvars()


def test_get_logger():
    """Test get_logger returns a usable structlog logger."""
    logger = get_logger("jobmatch_core.test")

    assert hasattr(logger, "info")
    assert hasattr(logger, "bind")
