"""
ReportGuard

Embedding access control for generated report documents.

A report (for example a Lighthouse HTML report) may be viewed directly,
or framed only by origins on an allow-list. The decision is enforced in
two places that are derived from one configuration value:

- in the browser, by a validator script injected into the report, and
- on delivery, by `frame-ancestors` / `X-Frame-Options` response headers.

Usage:
    from reportguard import ReportPolicy, EmbeddingContext, evaluate, normalize

    policy = ReportPolicy.from_origins(["https://dashboard.example"])

    artifact = policy.inject(raw_html)        # enforced document
    headers = policy.delivery_headers()       # matching HTTP headers

    result = evaluate(
        policy.allowed,
        EmbeddingContext.embedded(normalize("https://dashboard.example:443")),
    )
    assert result.is_allowed()
"""

__version__ = "1.0.0"

from .errors import ReportGuardError, ParseError, AuditError

from .origin import Origin, normalize, try_normalize
from .allowlist import AllowedOriginSet

from .context import ContextKind, EmbeddingContext, context_from_headers
from .evaluator import Decision, ValidationResult, evaluate, is_unrestricted

from .delivery import DeliveryHeaderSet, headers
from .client_validator import ClientValidator, ValidatorState
from .mutator import Artifact, InjectionOutcome, inject, is_injected, embedded_fingerprint

from .config import ReportPolicy, load_policy

__all__ = [
    "ReportGuardError",
    "ParseError",
    "AuditError",
    "Origin",
    "normalize",
    "try_normalize",
    "AllowedOriginSet",
    "ContextKind",
    "EmbeddingContext",
    "context_from_headers",
    "Decision",
    "ValidationResult",
    "evaluate",
    "is_unrestricted",
    "DeliveryHeaderSet",
    "headers",
    "ClientValidator",
    "ValidatorState",
    "Artifact",
    "InjectionOutcome",
    "inject",
    "is_injected",
    "embedded_fingerprint",
    "ReportPolicy",
    "load_policy",
]
