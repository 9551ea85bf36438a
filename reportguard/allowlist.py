"""
ReportGuard Allowed-Origin Set

The immutable set of origins permitted to view or embed a report
artifact. An empty set is meaningful: it means "no restriction".
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from .origin import Origin, normalize
from .util import canonicalize, sha256_hex


@dataclass(frozen=True)
class AllowedOriginSet:
    """Ordered, duplicate-free sequence of canonical origins."""
    origins: Tuple[Origin, ...] = ()

    @classmethod
    def from_strings(cls, values: Iterable[str]) -> "AllowedOriginSet":
        """
        Build the set from operator-supplied origin strings.

        Entries are canonicalized; exact duplicates collapse to their
        first occurrence.

        Raises:
            ParseError: On the first entry that cannot be parsed. Invalid
                entries are never dropped silently.
        """
        seen: List[Origin] = []
        for value in values:
            origin = normalize(value)
            if origin not in seen:
                seen.append(origin)
        return cls(origins=tuple(seen))

    def __iter__(self) -> Iterator[Origin]:
        return iter(self.origins)

    def __len__(self) -> int:
        return len(self.origins)

    def is_empty(self) -> bool:
        return not self.origins

    def match(self, origin: Origin) -> Optional[Origin]:
        """Return the first member equivalent to `origin`, or None."""
        for allowed in self.origins:
            if allowed.equivalent(origin):
                return allowed
        return None

    def serialize(self) -> List[str]:
        return [o.serialize() for o in self.origins]

    def fingerprint(self) -> str:
        """SHA-256 over the canonical JSON of the serialized origins."""
        return sha256_hex(canonicalize(self.serialize()))


EMPTY = AllowedOriginSet()
