"""
ReportGuard Delivery Policy

Derives the HTTP response headers that restrict framing of the served
artifact. The restrictive branch is decided by the evaluator's own rule
for unrestricted sets, so headers and client-side checks cannot disagree.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from .allowlist import AllowedOriginSet
from .evaluator import is_unrestricted


CSP_HEADER = "Content-Security-Policy"
FRAME_OPTIONS_HEADER = "X-Frame-Options"

UNRESTRICTED_ANCESTORS = "*"
RESTRICTED_FRAME_OPTIONS = "SAMEORIGIN"


@dataclass(frozen=True)
class DeliveryHeaderSet:
    """
    Pair of framing header values.

    `frame_options` is None when unrestricted; the header is then omitted,
    which browsers treat as "any embedder".
    """
    frame_ancestors: str
    frame_options: Optional[str]

    @property
    def restricted(self) -> bool:
        return self.frame_options is not None

    def csp_value(self) -> str:
        return f"frame-ancestors {self.frame_ancestors}"

    def as_dict(self) -> Dict[str, str]:
        d = {CSP_HEADER: self.csp_value()}
        if self.frame_options is not None:
            d[FRAME_OPTIONS_HEADER] = self.frame_options
        return d


def ancestor_sources(allowed: AllowedOriginSet) -> List[str]:
    """
    Source expressions for the frame-ancestors directive.

    Each listed origin in canonical form, followed by its loopback alias
    when it has one, so the browser accepts exactly what the evaluator does.
    """
    sources: List[str] = []
    for origin in allowed:
        for candidate in (origin, origin.loopback_alias()):
            if candidate is None:
                continue
            value = candidate.serialize()
            if value not in sources:
                sources.append(value)
    return sources


def headers(allowed: AllowedOriginSet) -> DeliveryHeaderSet:
    if is_unrestricted(allowed):
        return DeliveryHeaderSet(frame_ancestors=UNRESTRICTED_ANCESTORS, frame_options=None)
    return DeliveryHeaderSet(
        frame_ancestors=" ".join(ancestor_sources(allowed)),
        frame_options=RESTRICTED_FRAME_OPTIONS,
    )
