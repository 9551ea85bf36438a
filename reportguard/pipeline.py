"""
Publishing pipeline: raw report -> enforced artifact -> storage.
"""

from pathlib import Path
from typing import Optional, Union

from .config import ReportPolicy
from .logging_config import audit_log
from .models import AuditResult
from .mutator import Artifact


def publish(
    raw_html: str,
    policy: ReportPolicy,
    audit: Optional[AuditResult] = None,
    output_path: Optional[Union[str, Path]] = None
) -> Artifact:
    """
    Inject the policy into a report and optionally write it out.

    The document is written even when the insertion point is missing;
    the caller decides what to do with the artifact's warning.

    Args:
        raw_html: Report HTML from the audit collaborator
        policy: The shared ReportPolicy (also used to serve the artifact)
        audit: Summary of the audit run, logged when given
        output_path: Where to store the artifact

    Returns:
        The resulting Artifact
    """
    artifact = policy.inject(raw_html)

    if audit is not None:
        audit_log.audit_completed(
            url=audit.final_displayed_url,
            performance_score=audit.performance_score,
            form_factor=audit.form_factor,
        )

    if output_path is not None:
        Path(output_path).write_text(artifact.html, encoding="utf-8")

    return artifact
