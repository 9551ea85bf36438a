"""
ReportGuard Policy Evaluator

The single source of truth for embedding decisions. The rules below are
evaluated in order and the first one that applies decides:

    1. empty allow-list              -> ALLOWED (no restriction)
    2. top-level context             -> ALLOWED (restriction applies to framing only)
    3. embedded by a listed origin   -> ALLOWED
    4. embedded by an unlisted one   -> DENIED
    5. embedded by an unknown origin -> DENIED

Rule 5 is default-deny under uncertainty: suppressing the referrer or
top-origin signal must never grant access.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .allowlist import AllowedOriginSet
from .context import ContextKind, EmbeddingContext
from .origin import Origin


class Decision(str, Enum):
    ALLOWED = "ALLOWED"
    DENIED = "DENIED"


REASON_NOT_LISTED = "origin not in allow-list"
REASON_UNVERIFIED = "embedding origin could not be verified"


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of an evaluation.

    `reason` is display text for denials; it never feeds back into
    control flow.
    """
    decision: Decision
    reason: Optional[str] = None
    matched_origin: Optional[Origin] = None

    @classmethod
    def allowed(cls, matched: Optional[Origin] = None) -> "ValidationResult":
        return cls(Decision.ALLOWED, matched_origin=matched)

    @classmethod
    def denied(cls, reason: str) -> "ValidationResult":
        return cls(Decision.DENIED, reason=reason)

    def is_allowed(self) -> bool:
        return self.decision == Decision.ALLOWED

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"decision": self.decision.value}
        if self.reason:
            d["reason"] = self.reason
        if self.matched_origin:
            d["matched_origin"] = self.matched_origin.serialize()
        return d


def is_unrestricted(allowed: AllowedOriginSet) -> bool:
    """Rule 1. Shared with the delivery header policy."""
    return allowed.is_empty()


def evaluate(allowed: AllowedOriginSet, context: EmbeddingContext) -> ValidationResult:
    """
    Classify an embedding context against the allow-list.

    Args:
        allowed: The configured Allowed-Origin Set
        context: The observed embedding context

    Returns:
        ValidationResult (ALLOWED, or DENIED with a display reason)
    """
    if is_unrestricted(allowed):
        return ValidationResult.allowed()

    if context.kind == ContextKind.TOP_LEVEL:
        return ValidationResult.allowed()

    if context.kind == ContextKind.EMBEDDED and context.observed_origin is not None:
        matched = allowed.match(context.observed_origin)
        if matched is not None:
            return ValidationResult.allowed(matched)
        return ValidationResult.denied(REASON_NOT_LISTED)

    return ValidationResult.denied(REASON_UNVERIFIED)
