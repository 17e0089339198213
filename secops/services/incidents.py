"""
Security alerts and the logged-attack feed shown on the SOC dashboard.
"""

import logging
from typing import List
from uuid import UUID

from tortoise import timezone

from secops.core.store import bounded
from secops.errors import NotFoundError, ValidationError
from secops.models.security import (
    AlertSeverity,
    AlertStatus,
    AttackStatus,
    SecurityAlert,
    SecurityAttack,
)
from secops.services.audit import SecurityEvents, audit

logger = logging.getLogger(__name__)

ATTACK_FEED_LIMIT = 50


def _required(value: str | None, name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{name} is required")
    return value.strip()


def alert_to_dict(a: SecurityAlert) -> dict:
    return {
        "id": str(a.id),
        "severity": a.severity.value,
        "title": a.title,
        "description": a.description,
        "status": a.status.value,
        "timestamp": a.created_at.isoformat(),
        "resolved_at": a.resolved_at.isoformat() if a.resolved_at else None,
        "resolved_by": str(a.resolved_by_id) if a.resolved_by_id else None,
    }


def attack_to_dict(a: SecurityAttack) -> dict:
    return {
        "id": str(a.id),
        "type": a.type,
        "payload": a.payload,
        "ip_address": a.ip_address,
        "user_agent": a.user_agent,
        "status": a.status.value,
        "description": a.description,
        "timestamp": a.created_at.isoformat(),
    }


async def list_alerts() -> List[SecurityAlert]:
    return await bounded(SecurityAlert.all().order_by("-created_at"), "list security alerts")


async def create_alert(severity: AlertSeverity, title: str, description: str) -> SecurityAlert:
    alert = await bounded(
        SecurityAlert.create(
            severity=severity,
            title=_required(title, "Title"),
            description=_required(description, "Description"),
            status=AlertStatus.NEW,
        ),
        "create security alert",
    )
    logger.info("Security alert %s created (%s): %s", alert.id, severity.value, alert.title)
    return alert


async def update_alert_status(
    alert_id: UUID | str,
    status: AlertStatus,
    resolved_by: UUID | str | None = None,
) -> SecurityAlert:
    """Move an alert to ``status``; resolving stamps who and when."""
    alert = await bounded(SecurityAlert.get_or_none(id=alert_id), "look up security alert")
    if alert is None:
        raise NotFoundError("Security alert not found")

    alert.status = status
    if status == AlertStatus.RESOLVED:
        alert.resolved_at = timezone.now()
        alert.resolved_by_id = resolved_by
    await bounded(alert.save(), "update security alert")
    await audit(SecurityEvents.ALERT_UPDATE, f"Alert {alert.id} set to {status.value} by {resolved_by}")
    return alert


async def list_attacks(limit: int = ATTACK_FEED_LIMIT) -> List[SecurityAttack]:
    return await bounded(
        SecurityAttack.all().order_by("-created_at").limit(limit), "list security attacks"
    )


async def log_attack(
    attack_type: str,
    payload: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    status: AttackStatus = AttackStatus.DETECTED,
    description: str | None = None,
) -> SecurityAttack:
    attack = await bounded(
        SecurityAttack.create(
            type=_required(attack_type, "Type"),
            payload=_required(payload, "Payload"),
            ip_address=ip_address,
            user_agent=user_agent,
            status=status,
            description=description,
        ),
        "log security attack",
    )
    await audit(SecurityEvents.ATTACK, f"{attack.type} attack logged: {attack.payload}", ip=ip_address)
    return attack
