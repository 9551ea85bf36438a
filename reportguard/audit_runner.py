"""
Lighthouse audit collaborator.

Runs the `lighthouse` CLI against a URL in headless Chrome and returns the
raw HTML report together with the parsed audit summary. Desktop is the
default form factor.
"""

import json
import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import List, Tuple

from .errors import AuditError
from .models import AuditResult

logger = logging.getLogger(__name__)

LIGHTHOUSE_BIN = os.getenv("LIGHTHOUSE_BIN", "lighthouse")
AUDIT_TIMEOUT_SECONDS = int(os.getenv("AUDIT_TIMEOUT_SECONDS", "300"))

DESKTOP_FLAGS = ["--preset=desktop"]  # 1350x940, scale factor 1
MOBILE_FLAGS = [
    "--form-factor=mobile",
    "--screenEmulation.mobile",
    "--screenEmulation.width=360",
    "--screenEmulation.height=640",
    "--screenEmulation.deviceScaleFactor=2",
]


def build_command(url: str, output_base: str, is_mobile: bool = False) -> List[str]:
    return [
        LIGHTHOUSE_BIN,
        url,
        "--output=html",
        "--output=json",
        f"--output-path={output_base}",
        "--chrome-flags=--headless",
        *(MOBILE_FLAGS if is_mobile else DESKTOP_FLAGS),
    ]


def run_audit(url: str, is_mobile: bool = False) -> Tuple[str, AuditResult]:
    """
    Audit `url` and return (raw_html, AuditResult).

    Raises:
        AuditError: If lighthouse is missing, fails, times out, or its
            output cannot be read
    """
    form_factor = "mobile" if is_mobile else "desktop"
    with tempfile.TemporaryDirectory(prefix="reportguard-") as tmp:
        base = Path(tmp) / "report"
        cmd = build_command(url, str(base), is_mobile)
        logger.info("running lighthouse for %s (%s)", url, form_factor)
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=AUDIT_TIMEOUT_SECONDS)
        except FileNotFoundError as e:
            raise AuditError(f"lighthouse executable not found: {LIGHTHOUSE_BIN}") from e
        except subprocess.TimeoutExpired as e:
            raise AuditError(f"lighthouse timed out after {AUDIT_TIMEOUT_SECONDS}s") from e

        if proc.returncode != 0:
            logger.error("lighthouse failed: %s", proc.stderr.strip()[-2000:])
            raise AuditError(f"lighthouse exited with status {proc.returncode}")

        html_path = Path(f"{base}.report.html")
        json_path = Path(f"{base}.report.json")
        try:
            raw_html = html_path.read_text(encoding="utf-8")
            lhr = json.loads(json_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise AuditError(f"unreadable lighthouse output: {e}") from e

    return raw_html, AuditResult.from_lhr(lhr, form_factor=form_factor)
