from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response

from secops.config import settings
from secops.deps import get_ip_evaluator
from secops.errors import EvaluationError
from secops.schemas.security import IPRulePayload
from secops.services.ip_access import IPAccessEvaluator
from secops.services.security import AuthUser, require_admin

router = APIRouter(prefix="/ip-access", tags=["ip-access"])


@router.get("/check")
async def check_ip(
    ip: str = Query(..., description="IPv4 address to evaluate"),
    evaluator: IPAccessEvaluator = Depends(get_ip_evaluator),
):
    """Decide whether ``ip`` may reach a gated entry point."""
    try:
        decision = await evaluator.check(ip)
    except EvaluationError:
        if settings.IP_ERROR_POLICY == "error":
            raise
        allowed = settings.IP_ERROR_POLICY == "allow"
        return {
            "allowed": allowed,
            "reason": f"Error checking IP, policy is to {'allow' if allowed else 'deny'}",
            "rule": None,
        }
    return decision.to_dict()


@router.get("")
async def list_rules(
    _: AuthUser = Depends(require_admin),
    evaluator: IPAccessEvaluator = Depends(get_ip_evaluator),
):
    rules = await evaluator.list_rules()
    return {"success": True, "ip_rules": [r.to_dict() for r in rules]}


@router.post("")
async def upsert_rule(
    response: Response,
    payload: IPRulePayload = Body(...),
    admin: AuthUser = Depends(require_admin),
    evaluator: IPAccessEvaluator = Depends(get_ip_evaluator),
):
    """Create a rule, or overwrite the existing rule for the same address."""
    rule, created = await evaluator.upsert(
        payload.ip_address, payload.type, payload.description, actor_id=admin.user_id
    )
    if created:
        response.status_code = 201
    return {"success": True, "ip_rule": rule.to_dict(), "created": created, "updated": not created}


@router.delete("/{rule_id}")
async def delete_rule(
    rule_id: UUID,
    _: AuthUser = Depends(require_admin),
    evaluator: IPAccessEvaluator = Depends(get_ip_evaluator),
):
    await evaluator.remove(rule_id)
    return {"success": True}
