"""
Security log service
Appends audit events (OTP requests, verifications, rule changes, attacks)
"""

import logging
from typing import List

from tortoise.exceptions import BaseORMException

from secops.core.store import bounded
from secops.errors import PersistenceError
from secops.models.security import SecurityLog

logger = logging.getLogger(__name__)


class SecurityEvents:
    OTP_REQUEST = "OTP_REQUEST"
    OTP_VERIFICATION = "OTP_VERIFICATION"
    IP_RULE_UPSERT = "IP_RULE_UPSERT"
    IP_RULE_DELETE = "IP_RULE_DELETE"
    ALERT_UPDATE = "ALERT_UPDATE"
    ATTACK = "ATTACK"


async def audit(event_type: str, message: str, ip: str | None = None) -> None:
    """
    Append an event to the security log.

    Args:
        event_type: One of SecurityEvents
        message: Human-readable description of what happened
        ip: Client IP address, when known

    A failing sink is logged and never fails the operation being audited.
    """
    try:
        await bounded(SecurityLog.create(type=event_type, message=message, ip=ip), "write security log")
    except (PersistenceError, BaseORMException):
        logger.exception("Failed to write security log event %s: %s", event_type, message)


async def recent_logs(limit: int = 100) -> List[dict]:
    rows = await bounded(SecurityLog.all().order_by("-created_at").limit(limit), "list security logs")
    return [
        {
            "id": str(r.id),
            "type": r.type,
            "message": r.message,
            "ip": r.ip,
            "timestamp": r.created_at.isoformat(),
        }
        for r in rows
    ]
