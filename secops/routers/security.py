from fastapi import APIRouter, Body, Depends, Query, Request
from slowapi.util import get_remote_address

from secops.config import settings
from secops.core.rate_limit import limiter
from secops.schemas.security import AlertCreate, AlertUpdate, AttackCreate
from secops.services import incidents
from secops.services.audit import recent_logs
from secops.services.security import AuthUser, require_admin

router = APIRouter(prefix="/security", tags=["security"])


@router.get("/alerts")
async def get_alerts(_: AuthUser = Depends(require_admin)):
    alerts = await incidents.list_alerts()
    return {"success": True, "alerts": [incidents.alert_to_dict(a) for a in alerts]}


@router.post("/alerts", status_code=201)
async def create_alert(payload: AlertCreate = Body(...), _: AuthUser = Depends(require_admin)):
    alert = await incidents.create_alert(payload.severity, payload.title, payload.description)
    return {"success": True, "alert": incidents.alert_to_dict(alert)}


@router.put("/alerts")
async def update_alert(payload: AlertUpdate = Body(...), admin: AuthUser = Depends(require_admin)):
    """Change an alert's status; RESOLVED records the resolver (defaults to the caller)."""
    alert = await incidents.update_alert_status(
        payload.id, payload.status, resolved_by=payload.resolved_by or admin.user_id
    )
    return {"success": True, "alert": incidents.alert_to_dict(alert)}


@router.get("/attacks")
async def get_attacks(_: AuthUser = Depends(require_admin)):
    attacks = await incidents.list_attacks()
    return {"success": True, "attacks": [incidents.attack_to_dict(a) for a in attacks]}


@router.post("/attacks", status_code=201)
@limiter.limit(settings.ATTACK_LOG_RATE_LIMIT)
async def log_attack(request: Request, payload: AttackCreate = Body(...)):
    """Record an attack seen by a honeypot or detector."""
    attack = await incidents.log_attack(
        payload.type,
        payload.payload,
        ip_address=payload.ip_address or get_remote_address(request),
        user_agent=payload.user_agent or request.headers.get("user-agent"),
        status=payload.status,
        description=payload.description,
    )
    return {"success": True, "attack": incidents.attack_to_dict(attack)}


@router.get("/logs")
async def get_logs(
    limit: int = Query(100, ge=1, le=500),
    _: AuthUser = Depends(require_admin),
):
    return {"success": True, "logs": await recent_logs(limit)}
