"""
Prometheus metrics for SecOps Guard
"""

import time
from fastapi import Request
from fastapi.responses import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from secops.config import settings

REQUESTS_TOTAL = Counter(
    "secops_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

REQUEST_DURATION = Histogram(
    "secops_http_request_seconds",
    "Request duration in seconds",
    ["method", "path"]
)

OTP_ISSUED = Counter(
    "secops_otp_issued_total",
    "One-time passcodes issued",
    ["status"]
)

OTP_VERIFICATIONS = Counter(
    "secops_otp_verifications_total",
    "One-time passcode verification attempts",
    ["outcome"]
)

IP_DECISIONS = Counter(
    "secops_ip_decisions_total",
    "IP access decisions",
    ["decision"]
)


async def metrics_endpoint():
    """Prometheus metrics endpoint"""
    if not settings.METRICS_ENABLED:
        return Response(b"metrics disabled", media_type="text/plain")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def metrics_middleware(app):
    if not settings.METRICS_ENABLED:
        return

    @app.middleware("http")
    async def _metrics(request: Request, call_next):
        start = time.time()
        response = await call_next(request)

        # Route template keeps label cardinality bounded
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        REQUESTS_TOTAL.labels(
            method=request.method,
            path=path,
            status=str(response.status_code)
        ).inc()
        REQUEST_DURATION.labels(method=request.method, path=path).observe(time.time() - start)
        return response


def record_otp_issued(status: str):
    OTP_ISSUED.labels(status=status).inc()


def record_otp_verification(outcome: str):
    OTP_VERIFICATIONS.labels(outcome=outcome).inc()


def record_ip_decision(decision: str):
    IP_DECISIONS.labels(decision=decision).inc()
