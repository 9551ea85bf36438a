"""
Utility functions for ReportGuard.

Provides canonical JSON serialization, hashing and script-safe JSON.
"""

import json
import hashlib
from typing import Any, Union


def canonicalize(obj: Any) -> bytes:
    """
    Convert object to canonical JSON bytes.

    Canonical JSON:
    - Lexicographically sorted keys
    - No whitespace
    - UTF-8 encoded
    """
    s = json.dumps(obj, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
    return s.encode('utf-8')


def sha256_hex(data: Union[bytes, str]) -> str:
    """Compute SHA-256 hash and return as hex string."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).hexdigest()


def script_json(obj: Any) -> str:
    """
    Serialize to JSON that is safe to place inside an inline <script>.

    `<`, `>` and `&` are escaped so the payload can never close the
    script element or open a comment. Non-ASCII is escaped by json.dumps,
    which also covers U+2028/U+2029.
    """
    s = json.dumps(obj, sort_keys=True, separators=(',', ':'))
    return (
        s.replace('<', '\\u003c')
         .replace('>', '\\u003e')
         .replace('&', '\\u0026')
    )
