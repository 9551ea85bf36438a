import json
import logging

import pytest

from reportguard.errors import ReportGuardError
from reportguard.logging_config import (
    LOGGER_NAME,
    AuditLogger,
    StructuredFormatter,
    configure_logging,
    get_request_id,
    request_id_var,
    set_request_id,
)


@pytest.fixture
def package_logger():
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level = logger.handlers[:], logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_structured_formatter_lifts_event_and_request_id():
    token = request_id_var.set("req-42")
    try:
        record = logging.LogRecord("reportguard.audit", logging.WARNING, __file__, 10, "hello", (), None)
        record.extra_fields = {"event_type": "INJECTION_SKIPPED", "reason": "no head"}
        data = json.loads(StructuredFormatter().format(record))
    finally:
        request_id_var.reset(token)

    assert data["level"] == "WARNING"
    assert data["message"] == "hello"
    assert data["event"] == "INJECTION_SKIPPED"
    assert data["request_id"] == "req-42"
    assert data["reason"] == "no head"
    assert data["timestamp"].endswith("Z")
    assert "event_type" not in data


def test_structured_formatter_plain_record():
    record = logging.LogRecord("reportguard", logging.INFO, __file__, 1, "started %s", ("now",), None)
    data = json.loads(StructuredFormatter().format(record))
    assert data["message"] == "started now"
    assert "event" not in data


def test_set_request_id_keeps_well_formed_value():
    assert set_request_id("req-123") == "req-123"
    assert get_request_id() == "req-123"


@pytest.mark.parametrize("candidate", [None, "", "a b", "x" * 65, "id\r\nSet-Cookie: a=b"])
def test_set_request_id_replaces_missing_or_malformed(candidate):
    rid = set_request_id(candidate)
    assert rid != candidate
    assert len(rid) == 32
    assert get_request_id() == rid


def test_audit_events_carry_current_request_id(caplog):
    set_request_id("req-audit")
    log = AuditLogger("reportguard.test")
    with caplog.at_level(logging.INFO, logger="reportguard.test"):
        log.artifact_served("r.html", restricted=True)
    record = caplog.records[-1]
    assert record.getMessage() == "Artifact served from r.html"
    assert record.extra_fields["request_id"] == "req-audit"
    assert record.extra_fields["event_type"] == "ARTIFACT_SERVED"


def test_security_event_severity_maps_to_level(caplog):
    log = AuditLogger("reportguard.test")
    with caplog.at_level(logging.INFO, logger="reportguard.test"):
        log.security_event("artifact_policy_mismatch", severity="high", path="r.html")
    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.extra_fields["security_event"] == "artifact_policy_mismatch"
    assert record.extra_fields["path"] == "r.html"


def test_configure_logging_replaces_own_handler(package_logger):
    configure_logging(level="debug")
    configure_logging(level="WARNING", json_format=False)
    own = [h for h in package_logger.handlers if getattr(h, "_reportguard", False)]
    assert len(own) == 1
    assert package_logger.level == logging.WARNING
    assert not isinstance(own[0].formatter, StructuredFormatter)


def test_configure_logging_leaves_root_alone(package_logger):
    root_handlers = logging.getLogger().handlers[:]
    configure_logging()
    assert logging.getLogger().handlers == root_handlers


def test_configure_logging_rejects_unknown_level(package_logger):
    with pytest.raises(ReportGuardError):
        configure_logging(level="CHATTY")
