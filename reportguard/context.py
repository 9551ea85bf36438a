"""
ReportGuard Embedding Context

Describes how the report document is being displayed: as the outermost
browsing context, framed by a known origin, or framed by an origin that
could not be determined.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .origin import Origin, try_normalize


class ContextKind(str, Enum):
    TOP_LEVEL = "TOP_LEVEL"
    EMBEDDED = "EMBEDDED"
    EMBEDDED_UNKNOWN = "EMBEDDED_UNKNOWN"


# Sec-Fetch-Dest values sent for nested browsing contexts
FRAME_DESTINATIONS = frozenset({"iframe", "frame", "embed", "object"})


@dataclass(frozen=True)
class EmbeddingContext:
    kind: ContextKind
    observed_origin: Optional[Origin] = None

    @classmethod
    def top_level(cls) -> "EmbeddingContext":
        return cls(ContextKind.TOP_LEVEL)

    @classmethod
    def embedded(cls, origin: Optional[Origin]) -> "EmbeddingContext":
        """Framed context; a missing origin yields the unknown variant."""
        if origin is None:
            return cls(ContextKind.EMBEDDED_UNKNOWN)
        return cls(ContextKind.EMBEDDED, origin)

    @classmethod
    def unknown(cls) -> "EmbeddingContext":
        return cls(ContextKind.EMBEDDED_UNKNOWN)

    def describe(self) -> str:
        if self.kind == ContextKind.EMBEDDED:
            return f"embedded by {self.observed_origin}"
        if self.kind == ContextKind.EMBEDDED_UNKNOWN:
            return "embedded by unknown origin"
        return "top-level"


def context_from_headers(headers: Mapping[str, str]) -> EmbeddingContext:
    """
    Derive an embedding context from Fetch Metadata request headers.

    A request whose `Sec-Fetch-Dest` names a nested browsing context is
    embedded; the embedding origin is read from `Referer`, then `Origin`.
    Any other destination (or no header at all) is treated as top-level.

    Args:
        headers: Case-insensitive request header mapping

    Returns:
        The observed EmbeddingContext
    """
    dest = (headers.get("sec-fetch-dest") or "").strip().lower()
    if dest not in FRAME_DESTINATIONS:
        return EmbeddingContext.top_level()
    origin = try_normalize(headers.get("referer")) or try_normalize(headers.get("origin"))
    return EmbeddingContext.embedded(origin)
