import logging
from contextlib import asynccontextmanager

import sentry_sdk
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from secops.config import settings
from secops.core.middleware import RequestIdMiddleware, SecurityHeadersMiddleware
from secops.core.rate_limit import limiter
from secops.db import close_db, init_db
from secops.errors import SecOpsError
from secops.services.metrics import metrics_endpoint, metrics_middleware

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
log = logging.getLogger("secops")

if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN, traces_sample_rate=0.1, environment=settings.APP_ENV)


def _check_production_secrets() -> None:
    if not settings.is_production:
        return
    v = settings.JWT_SECRET or ""
    if v.startswith("dev-") or len(v) < 32:
        raise RuntimeError("Insecure JWT_SECRET; set a real secret in production")
    if not settings.RESEND_API_KEY:
        raise RuntimeError("RESEND_API_KEY must be set in production")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Starting SecOps Guard...")
    _check_production_secrets()
    log.info(
        "IP policy: default=%s on_error=%s",
        settings.IP_DEFAULT_POLICY,
        settings.IP_ERROR_POLICY,
    )
    await init_db()
    yield
    log.info("Shutting down SecOps Guard...")
    await close_db()
    log.info("Database connections closed")


app = FastAPI(
    title="SecOps Guard API",
    description="Security operations backend: IP access rules, OTP login, alerts and attack log",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(SecOpsError)
async def secops_error_handler(request: Request, exc: SecOpsError):
    if exc.status_code >= 500:
        log.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "retryable": exc.retryable},
    )


# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

from secops.routers import router  # noqa: E402

app.include_router(router)
log.info("Registered routes count: %s", len(app.routes))

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

metrics_middleware(app)


@app.get("/metrics")
async def prometheus_metrics():
    return await metrics_endpoint()


if __name__ == "__main__":
    uvicorn.run("secops.main:app", host="0.0.0.0", port=8000)
