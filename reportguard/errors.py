"""Exception types raised by ReportGuard."""


class ReportGuardError(Exception):
    """Base class for ReportGuard errors."""


class ParseError(ReportGuardError, ValueError):
    """Raised when an origin string cannot be parsed."""
    def __init__(self, value: str, message: str):
        self.value = value
        self.message = message
        super().__init__(f"invalid origin {value!r}: {message}")


class AuditError(ReportGuardError):
    """Raised when the external audit run fails or yields unusable output."""
