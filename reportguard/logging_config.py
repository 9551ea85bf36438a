"""
Logging configuration for ReportGuard.

Policy events (injections, embedding decisions, deliveries) are emitted
as one JSON object per line on the `reportguard` logger tree. Within a
request, every line carries the id echoed back in `X-Request-ID`.
"""

import json
import logging
import re
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .errors import ReportGuardError

LOGGER_NAME = "reportguard"

# Incoming X-Request-ID values are echoed into a response header and into
# every log line, so only short opaque tokens are taken over.
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record.

    Records produced by AuditLogger carry `extra_fields`; their
    `event_type` is lifted to the top-level `event` key so that policy
    events can be filtered without parsing the message.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = dict(getattr(record, "extra_fields", {}))
        event = fields.pop("event_type", None)
        if event:
            log_data["event"] = event

        request_id = fields.pop("request_id", None) or get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        log_data.update(fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class AuditLogger:
    """
    Specialized logger for policy events.

    Records artifact injection, embedding decisions and artifact delivery
    so that every enforcement step leaves a trail.
    """

    def __init__(self, name: str = f"{LOGGER_NAME}.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, message: str, **fields) -> None:
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(self._logger.name, level, "", 0, message, (), None)
        record.extra_fields = {"event_type": event_type, "request_id": get_request_id(), **fields}
        self._logger.handle(record)

    def artifact_injected(
        self,
        fingerprint: str,
        origins: List[str],
        document_length: int
    ) -> None:
        self._log(
            logging.INFO,
            "ARTIFACT_INJECTED",
            fingerprint=fingerprint,
            origins=origins,
            document_length=document_length,
            message=f"Enforcement injected for {len(origins)} allowed origin(s)"
        )

    def injection_skipped(self, reason: str, document_length: int) -> None:
        """Log a non-fatal skipped mutation."""
        self._log(
            logging.WARNING,
            "INJECTION_SKIPPED",
            reason=reason,
            document_length=document_length,
            message=f"Injection skipped: {reason}"
        )

    def embedding_decision(
        self,
        context: str,
        decision: str,
        reason: Optional[str] = None
    ) -> None:
        """Log an embedding decision taken on the server."""
        level = logging.INFO if decision == "ALLOWED" else logging.WARNING
        self._log(
            level,
            "EMBEDDING_DECISION",
            context=context,
            decision=decision,
            reason=reason,
            message=f"Embedding decision: {decision} ({context})"
        )

    def artifact_served(self, path: str, restricted: bool) -> None:
        self._log(
            logging.INFO,
            "ARTIFACT_SERVED",
            path=path,
            restricted=restricted,
            message=f"Artifact served from {path}"
        )

    def audit_completed(
        self,
        url: str,
        performance_score: Optional[float],
        form_factor: str
    ) -> None:
        """Log a finished audit run."""
        self._log(
            logging.INFO,
            "AUDIT_COMPLETED",
            url=url,
            performance_score=performance_score,
            form_factor=form_factor,
            message=f"Audit completed for {url}"
        )

    def security_event(
        self,
        event: str,
        severity: str = "medium",
        **details
    ) -> None:
        """Log a security-relevant event."""
        level = {
            "low": logging.INFO,
            "medium": logging.WARNING,
            "high": logging.ERROR,
            "critical": logging.CRITICAL
        }.get(severity, logging.WARNING)

        self._log(
            level,
            "SECURITY_EVENT",
            security_event=event,
            severity=severity,
            **details,
            message=f"Security event: {event}"
        )



def configure_logging(level: str = "INFO", json_format: bool = True) -> logging.Logger:
    """
    Route the `reportguard` logger tree to stderr.

    Only the package logger is touched; loggers of the web server and of
    other libraries keep their own configuration. Calling this again
    replaces the handler installed by the previous call.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit StructuredFormatter JSON lines instead of plain text

    Returns:
        The configured package logger

    Raises:
        ReportGuardError: If the level name is unknown
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ReportGuardError(f"unknown log level '{level}'")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric)

    for handler in logger.handlers[:]:
        if getattr(handler, "_reportguard", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler._reportguard = True
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
    logger.addHandler(handler)
    return logger


def set_request_id(candidate: Optional[str] = None) -> str:
    """
    Bind the request id for the current context.

    A well-formed `candidate` (usually the client's X-Request-ID) is kept;
    a missing or malformed one is replaced by a fresh id.
    """
    if candidate and REQUEST_ID_PATTERN.match(candidate):
        request_id = candidate
    else:
        request_id = uuid.uuid4().hex
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str:
    return request_id_var.get()


# Global audit logger instance
audit_log = AuditLogger()
