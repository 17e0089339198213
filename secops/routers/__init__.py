from fastapi import APIRouter
import logging


def build_router() -> APIRouter:
    router = APIRouter()
    log = logging.getLogger("routers")

    from .auth import router as auth_router
    from .health import router as health_router
    from .ip_access import router as ip_access_router
    from .security import router as security_router

    for name, sub in (
        ("auth", auth_router),
        ("ip_access", ip_access_router),
        ("security", security_router),
        ("health", health_router),
    ):
        router.include_router(sub)
        log.info("Loaded router: %s", name)
    return router


# Export module-level router so secops.main can import it
router = build_router()
