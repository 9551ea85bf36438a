#!/usr/bin/env python3
"""
ReportGuard Command Line Interface

Usage:
    reportguard inject --input <file> [--output <file>] [--origin <origin> ...]
    reportguard headers [--origin <origin> ...]
    reportguard evaluate --context top|unknown|<origin> [--origin <origin> ...]
    reportguard audit [url] [--mobile] [--output <file>]
    reportguard serve [--host <host>] [--port <port>]

Without --origin, the allow-list comes from REPORTGUARD_ALLOWED_ORIGINS.
Exit codes: 0 success, 1 denied/warning/audit failure, 2 configuration error.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .context import EmbeddingContext
from .errors import AuditError, ParseError, ReportGuardError
from .evaluator import evaluate
from .logging_config import configure_logging
from .mutator import InjectionOutcome
from .origin import normalize


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def cmd_inject(args) -> int:
    """Inject enforcement into an HTML report."""
    from .pipeline import publish

    policy = config.policy_for(args.origin)
    raw = Path(args.input).read_text(encoding="utf-8")
    artifact = publish(raw, policy, output_path=args.output)

    if not args.output:
        sys.stdout.write(artifact.html)
    if artifact.outcome == InjectionOutcome.INSERTION_POINT_NOT_FOUND:
        print(f"warning: {artifact.warning}", file=sys.stderr)
        return EXIT_FAILED
    if artifact.outcome == InjectionOutcome.ALREADY_INJECTED:
        if artifact.fingerprint != policy.fingerprint():
            print(
                "warning: document already enforces a different allow-list "
                f"(fingerprint {artifact.fingerprint}); it was left unchanged",
                file=sys.stderr,
            )
            return EXIT_FAILED
        print("note: document already carries the enforcement block", file=sys.stderr)
    return EXIT_OK


def cmd_headers(args) -> int:
    """Print the delivery headers for the allow-list."""
    policy = config.policy_for(args.origin)
    print(json.dumps(policy.delivery_headers().as_dict(), indent=2))
    return EXIT_OK


def parse_context(value: str) -> EmbeddingContext:
    if value == "top":
        return EmbeddingContext.top_level()
    if value == "unknown":
        return EmbeddingContext.unknown()
    return EmbeddingContext.embedded(normalize(value))


def cmd_evaluate(args) -> int:
    """Evaluate an embedding context against the allow-list."""
    policy = config.policy_for(args.origin)
    result = evaluate(policy.allowed, parse_context(args.context))
    print(json.dumps(result.to_dict(), indent=2))
    return EXIT_OK if result.is_allowed() else EXIT_FAILED


def cmd_audit(args) -> int:
    """Audit a URL and publish the enforced report."""
    from .audit_runner import run_audit
    from .pipeline import publish

    policy = config.load_policy()
    try:
        raw, audit = run_audit(args.url, is_mobile=args.mobile)
    except AuditError as e:
        print(f"Error during Lighthouse audit: {e}", file=sys.stderr)
        return EXIT_FAILED

    artifact = publish(raw, policy, audit=audit, output_path=args.output)
    print(f"Lighthouse audit completed for: {audit.final_displayed_url}")
    if audit.performance_score is not None:
        print(f"Performance score: {audit.performance_score:g}")
    print(f"Report written to: {args.output}")
    if artifact.warning:
        print(f"warning: {artifact.warning}", file=sys.stderr)
        return EXIT_FAILED
    return EXIT_OK


def cmd_serve(args) -> int:
    """Serve the artifact with its delivery headers."""
    import uvicorn
    from .server import create_app

    app = create_app(config.load_policy(), artifact_path=args.artifact)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reportguard",
        description="ReportGuard: embedding access control for generated reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  reportguard inject -i lighthouse-report.html -o report.html --origin https://a.example
  reportguard headers --origin https://a.example --origin http://localhost:8000
  reportguard evaluate --context http://127.0.0.1:8000 --origin http://localhost:8000
  reportguard audit https://miever.net --mobile
  reportguard serve --port 8080
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    inject_parser = subparsers.add_parser("inject", help="Inject enforcement into a report")
    inject_parser.add_argument("-i", "--input", required=True, help="Raw HTML report")
    inject_parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    inject_parser.add_argument("--origin", action="append", help="Allowed origin (repeatable)")

    headers_parser = subparsers.add_parser("headers", help="Print delivery headers")
    headers_parser.add_argument("--origin", action="append", help="Allowed origin (repeatable)")

    eval_parser = subparsers.add_parser("evaluate", help="Evaluate an embedding context")
    eval_parser.add_argument("-c", "--context", required=True,
                             help="'top', 'unknown' or the embedding origin")
    eval_parser.add_argument("--origin", action="append", help="Allowed origin (repeatable)")

    audit_parser = subparsers.add_parser("audit", help="Run Lighthouse and publish the report")
    audit_parser.add_argument("url", nargs="?", default=config.TARGET_URL, help="URL to audit")
    audit_parser.add_argument("--mobile", action="store_true", help="Emulate a mobile device")
    audit_parser.add_argument("-o", "--output", default=config.ARTIFACT_PATH, help="Artifact output file")

    serve_parser = subparsers.add_parser("serve", help="Serve the artifact over HTTP")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--artifact", default=None, help="Artifact file to serve")

    return parser


COMMANDS = {
    "inject": cmd_inject,
    "headers": cmd_headers,
    "evaluate": cmd_evaluate,
    "audit": cmd_audit,
    "serve": cmd_serve,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return EXIT_CONFIG

    try:
        configure_logging(level=config.LOG_LEVEL, json_format=config.LOG_JSON)
        return handler(args)
    except ParseError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except ReportGuardError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_CONFIG


if __name__ == "__main__":
    sys.exit(main())
