"""
Configuration module for ReportGuard.

Centralizes configuration with environment variable support and builds
the single `ReportPolicy` shared by the artifact mutator and the server.
"""

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .allowlist import AllowedOriginSet
from .client_validator import (
    ClientValidator,
    DEFAULT_DENIAL_MESSAGE,
    DEFAULT_DENIAL_TITLE,
    DEFAULT_RECHECK_DELAYS_MS,
)
from .delivery import DeliveryHeaderSet, headers
from .errors import ReportGuardError
from .mutator import Artifact, inject

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("REPORTGUARD_ENV", "dev")  # dev|stage|prod

ALLOWED_ORIGINS = os.getenv("REPORTGUARD_ALLOWED_ORIGINS", "")
ARTIFACT_PATH = os.getenv("REPORTGUARD_ARTIFACT_PATH", "lighthouse-report.html")
RECHECK_DELAYS_MS = os.getenv("REPORTGUARD_RECHECK_DELAYS_MS", ",".join(str(d) for d in DEFAULT_RECHECK_DELAYS_MS))
DENIAL_TITLE = os.getenv("REPORTGUARD_DENIAL_TITLE", DEFAULT_DENIAL_TITLE)

# Server-side check of framed requests via Sec-Fetch-Dest / Referer
ENFORCE_FETCH_METADATA = os.getenv("REPORTGUARD_ENFORCE_FETCH_METADATA", "").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("REPORTGUARD_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("REPORTGUARD_LOG_JSON", "true").lower() in ("1", "true", "yes")

TARGET_URL = os.getenv("REPORTGUARD_TARGET_URL", "https://miever.net")

_LIST_SEPARATOR = re.compile(r"[\s,]+")


def split_list(value: str) -> List[str]:
    """Split a comma and/or whitespace separated setting."""
    return [v for v in _LIST_SEPARATOR.split(value or "") if v]


def parse_delays(value: str) -> Tuple[int, ...]:
    try:
        return tuple(int(v) for v in split_list(value))
    except ValueError as e:
        raise ReportGuardError(f"invalid re-check delays {value!r}") from e


# ============================================================
# Shared Policy
# ============================================================

@dataclass(frozen=True)
class ReportPolicy:
    """
    The one configuration object for an artifact and its delivery.

    Both the mutator and the server read the Allowed-Origin Set from
    here, so the baked-in client policy and the response headers are
    always derived from the same value.
    """
    allowed: AllowedOriginSet
    recheck_delays_ms: Tuple[int, ...] = DEFAULT_RECHECK_DELAYS_MS
    denial_title: str = DEFAULT_DENIAL_TITLE
    denial_message: str = DEFAULT_DENIAL_MESSAGE

    @classmethod
    def from_origins(cls, origins: Iterable[str], **kwargs) -> "ReportPolicy":
        return cls(allowed=AllowedOriginSet.from_strings(origins), **kwargs)

    def client_validator(self) -> ClientValidator:
        return ClientValidator(
            allowed=self.allowed,
            recheck_delays_ms=self.recheck_delays_ms,
            denial_title=self.denial_title,
            denial_message=self.denial_message,
        )

    def delivery_headers(self) -> DeliveryHeaderSet:
        return headers(self.allowed)

    def inject(self, document: str) -> Artifact:
        return inject(document, self.allowed, self.client_validator())

    def fingerprint(self) -> str:
        return self.allowed.fingerprint()


@lru_cache(maxsize=1)
def load_policy() -> ReportPolicy:
    """
    Build the process-wide policy from the environment, once.

    Raises:
        ParseError: If any configured origin is malformed
    """
    return ReportPolicy.from_origins(
        split_list(ALLOWED_ORIGINS),
        recheck_delays_ms=parse_delays(RECHECK_DELAYS_MS),
        denial_title=DENIAL_TITLE,
    )


def policy_for(origins: Optional[List[str]]) -> ReportPolicy:
    """Policy for explicit origins, or the environment policy when None."""
    if origins is None:
        return load_policy()
    base = load_policy()
    return ReportPolicy.from_origins(
        origins,
        recheck_delays_ms=base.recheck_delays_ms,
        denial_title=base.denial_title,
    )


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, Optional[str]]:
    """
    Check the environment configuration without raising.

    Returns dict of setting -> problem (None when fine).
    """
    problems: Dict[str, Optional[str]] = {
        "allowed_origins": None,
        "recheck_delays": None,
        "artifact_path": None,
    }
    try:
        AllowedOriginSet.from_strings(split_list(ALLOWED_ORIGINS))
    except ReportGuardError as e:
        problems["allowed_origins"] = str(e)
    try:
        ClientValidator(AllowedOriginSet(), recheck_delays_ms=parse_delays(RECHECK_DELAYS_MS))
    except (ReportGuardError, ValueError) as e:
        problems["recheck_delays"] = str(e)
    if not Path(ARTIFACT_PATH).exists():
        problems["artifact_path"] = f"{ARTIFACT_PATH} does not exist"
    return problems


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("REPORTGUARD_DEBUG", "").lower() in ("1", "true", "yes")
