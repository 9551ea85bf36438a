"""
HTTP delivery of the report artifact.

Every response carries the framing headers derived from the same
ReportPolicy that was used to build the artifact. Run with:

    uvicorn --factory reportguard.server:create_app
"""

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from . import config
from .config import ReportPolicy, load_policy
from .context import context_from_headers
from .delivery import DeliveryHeaderSet
from .evaluator import evaluate
from .logging_config import audit_log, set_request_id
from .models import DeliveryHeaders, PolicyView
from .mutator import embedded_fingerprint


class DeliveryPolicyMiddleware(BaseHTTPMiddleware):
    """Attach the framing headers and a request id to every response."""

    def __init__(self, app: ASGIApp, *, delivery: DeliveryHeaderSet) -> None:
        super().__init__(app)
        self._headers = delivery.as_dict()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = set_request_id(request.headers.get("x-request-id") or None)
        response = await call_next(request)
        for name, value in self._headers.items():
            response.headers[name] = value
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers["X-Request-ID"] = request_id
        return response


def create_app(
    policy: Optional[ReportPolicy] = None,
    artifact_path: Optional[str] = None,
    enforce_fetch_metadata: Optional[bool] = None
) -> FastAPI:
    """
    Build the delivery app.

    The policy is resolved once here; a malformed configured origin
    raises ParseError before the app ever serves a request.
    """
    policy = policy or load_policy()
    path = Path(artifact_path or config.ARTIFACT_PATH)
    if enforce_fetch_metadata is None:
        enforce_fetch_metadata = config.ENFORCE_FETCH_METADATA

    delivery = policy.delivery_headers()
    fingerprint = policy.fingerprint()

    app = FastAPI(
        title="ReportGuard",
        debug=config.is_debug(),
        openapi_url=None if config.is_production() else "/openapi.json",
    )
    app.add_middleware(DeliveryPolicyMiddleware, delivery=delivery)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/policy", response_model=PolicyView)
    def policy_view():
        return PolicyView(
            allowed_origins=policy.allowed.serialize(),
            restricted=delivery.restricted,
            fingerprint=fingerprint,
            headers=DeliveryHeaders(
                content_security_policy=delivery.csp_value(),
                x_frame_options=delivery.frame_options,
            ),
        )

    @app.get("/report", response_class=HTMLResponse)
    def report(request: Request):
        if enforce_fetch_metadata:
            ctx = context_from_headers(request.headers)
            result = evaluate(policy.allowed, ctx)
            audit_log.embedding_decision(ctx.describe(), result.decision.value, result.reason)
            if not result.is_allowed():
                raise HTTPException(403, "EMBEDDING_DENIED")

        if not path.is_file():
            raise HTTPException(404, "ARTIFACT_NOT_FOUND")
        document = path.read_text(encoding="utf-8")

        embedded = embedded_fingerprint(document)
        if embedded is not None and embedded != fingerprint:
            audit_log.security_event(
                "artifact_policy_mismatch",
                severity="high",
                path=str(path),
                artifact_fingerprint=embedded,
                policy_fingerprint=fingerprint,
            )
            raise HTTPException(503, "ARTIFACT_POLICY_MISMATCH")
        if embedded is None and delivery.restricted:
            audit_log.security_event("artifact_not_enforced", severity="medium", path=str(path))

        audit_log.artifact_served(str(path), delivery.restricted)
        return HTMLResponse(document, headers={"Cache-Control": "no-store"})

    return app
