"""
ReportGuard Origin Normalizer

Parses origin strings into (scheme, hostname, port) triples and defines
origin equivalence. Every Origin is fully resolved: a missing port is
filled in from the scheme's default before any comparison happens.
"""

import ipaddress
import re
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlsplit

from .errors import ParseError


DEFAULT_PORTS: Dict[str, int] = {
    "http": 80,
    "https": 443,
}

# Hostnames treated as the same loopback endpoint
LOOPBACK_ALIASES = frozenset({"localhost", "127.0.0.1"})

# One letter-digit-hyphen label of an ASCII (or punycoded) hostname
HOST_LABEL = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
MAX_HOSTNAME_LENGTH = 253


def canonical_host(raw: str, hostname: str) -> str:
    """
    Reduce a parsed hostname to the form browsers report and CSP accepts.

    IPv6 literals are compressed, dotted IPv4 addresses are checked and
    internationalized names are converted to their ASCII (punycode) form.
    Anything else outside the letter-digit-hyphen grammar is rejected, so
    a host can never smuggle `;`, `,`, `*` or whitespace into a header.
    """
    if ":" in hostname:
        if "%" in hostname:
            raise ParseError(raw, "IPv6 zone identifiers are not allowed")
        try:
            return str(ipaddress.IPv6Address(hostname))
        except ValueError as e:
            raise ParseError(raw, f"invalid IPv6 address '{hostname}'") from e

    try:
        host = hostname.encode("idna").decode("ascii").lower()
    except UnicodeError as e:
        raise ParseError(raw, f"invalid hostname '{hostname}'") from e

    if len(host) > MAX_HOSTNAME_LENGTH:
        raise ParseError(raw, "hostname too long")

    labels = host.split(".")
    if all(label.isdigit() for label in labels):
        try:
            return str(ipaddress.IPv4Address(host))
        except ValueError as e:
            raise ParseError(raw, f"invalid IPv4 address '{host}'") from e

    for label in labels:
        if not HOST_LABEL.match(label):
            raise ParseError(raw, f"invalid hostname '{hostname}'")
    return host


@dataclass(frozen=True)
class Origin:
    """
    A canonical (scheme, hostname, port) triple.

    Instances compare equal only when all three fields match exactly;
    use `equivalent` for the policy notion of sameness.
    """
    scheme: str
    hostname: str
    port: int

    def serialize(self) -> str:
        """Canonical string form, with the default port elided."""
        host = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        if DEFAULT_PORTS.get(self.scheme) == self.port:
            return f"{self.scheme}://{host}"
        return f"{self.scheme}://{host}:{self.port}"

    def equivalent(self, other: "Origin") -> bool:
        """
        Policy equivalence.

        Scheme and port must match exactly. Hostnames must match exactly,
        except that `localhost` and `127.0.0.1` are interchangeable.
        """
        if self.scheme != other.scheme or self.port != other.port:
            return False
        if self.hostname == other.hostname:
            return True
        return self.hostname in LOOPBACK_ALIASES and other.hostname in LOOPBACK_ALIASES

    def loopback_alias(self) -> Optional["Origin"]:
        """The equivalent origin under the other loopback hostname, if any."""
        if self.hostname not in LOOPBACK_ALIASES:
            return None
        other = next(h for h in LOOPBACK_ALIASES if h != self.hostname)
        return Origin(self.scheme, other, self.port)

    def __str__(self) -> str:
        return self.serialize()


def normalize(raw: str) -> Origin:
    """
    Parse a URL-like string into a canonical Origin.

    A bare `host:port` without a scheme is read as `http`. Path, query,
    fragment and user info are discarded.

    Args:
        raw: Origin or URL string, e.g. "https://a.example/report"

    Returns:
        The fully resolved Origin

    Raises:
        ParseError: If no recognizable http(s) scheme and host can be found
    """
    if not isinstance(raw, str):
        raise ParseError(repr(raw), "must be a string")

    value = raw.strip()
    if not value:
        raise ParseError(raw, "is empty")

    if value.lower() == "null":
        raise ParseError(raw, "opaque origin")

    if "://" not in value:
        value = "http://" + value

    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError as e:
        raise ParseError(raw, str(e)) from e

    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise ParseError(raw, f"unsupported scheme '{scheme}'")

    hostname = (parts.hostname or "").rstrip(".")
    if not hostname:
        raise ParseError(raw, "missing host")

    if port is None:
        port = DEFAULT_PORTS[scheme]
    elif port == 0:
        raise ParseError(raw, "port out of range")

    return Origin(scheme=scheme, hostname=canonical_host(raw, hostname), port=port)


def try_normalize(raw: Optional[str]) -> Optional[Origin]:
    """Normalize an untrusted signal (referrer, request header); None if unusable."""
    if not raw:
        return None
    try:
        return normalize(raw)
    except ParseError:
        return None
