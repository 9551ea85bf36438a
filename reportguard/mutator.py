"""
ReportGuard Artifact Mutator

Injects the embedding policy into a static HTML report, exactly once.

Directly after the opening <head> tag the mutator inserts, in order:

    <!-- reportguard:enforced fingerprint=... -->
    <meta http-equiv="Content-Security-Policy" content="frame-ancestors ...">
    <script>...client validator...</script>

Every other byte of the document is left untouched. A document without a
<head> tag is returned as-is with a warning outcome instead of an error.
"""

import html
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .allowlist import AllowedOriginSet
from .client_validator import ClientValidator
from .delivery import headers
from .logging_config import audit_log


MARKER_PREFIX = "<!-- reportguard:enforced"

HEAD_OPEN_PATTERN = re.compile(r"<head(?=[\s>/])[^>]*>", re.IGNORECASE)
MARKER_PATTERN = re.compile(r"<!-- reportguard:enforced fingerprint=([0-9a-f]{64}) -->")


class InjectionOutcome(str, Enum):
    INJECTED = "INJECTED"
    ALREADY_INJECTED = "ALREADY_INJECTED"
    INSERTION_POINT_NOT_FOUND = "INSERTION_POINT_NOT_FOUND"


@dataclass(frozen=True)
class Artifact:
    """An HTML document and whether it carries the enforcement block."""
    html: str
    injected: bool
    outcome: InjectionOutcome
    fingerprint: Optional[str] = None

    @property
    def warning(self) -> Optional[str]:
        if self.outcome == InjectionOutcome.INSERTION_POINT_NOT_FOUND:
            return "insertion point not found: document has no <head> tag"
        return None


def is_injected(document: str) -> bool:
    return MARKER_PREFIX in document


def embedded_fingerprint(document: str) -> Optional[str]:
    """Policy fingerprint recorded in an artifact's marker, if any."""
    m = MARKER_PATTERN.search(document)
    return m.group(1) if m else None


def build_block(allowed: AllowedOriginSet, validator: ClientValidator) -> str:
    marker = f"{MARKER_PREFIX} fingerprint={allowed.fingerprint()} -->"
    csp = html.escape(headers(allowed).csp_value(), quote=True)
    meta = f'<meta http-equiv="Content-Security-Policy" content="{csp}">'
    script = f"<script>{validator.render()}</script>"
    return marker + meta + script


def inject(
    document: str,
    allowed: AllowedOriginSet,
    validator: Optional[ClientValidator] = None
) -> Artifact:
    """
    Embed the enforcement block into a report document.

    Args:
        document: Raw HTML from the audit run
        allowed: The Allowed-Origin Set the artifact enforces
        validator: Client validator to embed; defaults to one built from `allowed`

    Returns:
        Artifact. Already-marked documents come back unchanged with
        ALREADY_INJECTED; documents without a head tag come back unchanged
        with INSERTION_POINT_NOT_FOUND.
    """
    if is_injected(document):
        return Artifact(
            html=document,
            injected=True,
            outcome=InjectionOutcome.ALREADY_INJECTED,
            fingerprint=embedded_fingerprint(document),
        )

    m = HEAD_OPEN_PATTERN.search(document)
    if m is None:
        audit_log.injection_skipped(reason="insertion point not found", document_length=len(document))
        return Artifact(html=document, injected=False, outcome=InjectionOutcome.INSERTION_POINT_NOT_FOUND)

    if validator is None:
        validator = ClientValidator(allowed)
    elif validator.allowed != allowed:
        raise ValueError("client validator was built for a different Allowed-Origin Set")

    block = build_block(allowed, validator)
    mutated = document[:m.end()] + block + document[m.end():]
    fingerprint = allowed.fingerprint()

    audit_log.artifact_injected(
        fingerprint=fingerprint,
        origins=allowed.serialize(),
        document_length=len(document),
    )
    return Artifact(html=mutated, injected=True, outcome=InjectionOutcome.INJECTED, fingerprint=fingerprint)
