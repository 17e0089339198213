from enum import Enum

from tortoise import fields
from .base import BaseModel


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AlertStatus(str, Enum):
    NEW = "NEW"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    RESOLVED = "RESOLVED"


class AttackStatus(str, Enum):
    DETECTED = "DETECTED"
    BLOCKED = "BLOCKED"
    SUCCESSFUL = "SUCCESSFUL"


class SecurityLog(BaseModel):
    """Append-only audit trail. Rows are never updated."""
    type = fields.CharField(max_length=64, index=True)
    message = fields.TextField()
    ip = fields.CharField(max_length=64, null=True)

    class Meta:
        table = "security_logs"


class SecurityAlert(BaseModel):
    severity = fields.CharEnumField(AlertSeverity, max_length=16)
    title = fields.CharField(max_length=255)
    description = fields.TextField()
    status = fields.CharEnumField(AlertStatus, max_length=16, default=AlertStatus.NEW)
    resolved_at = fields.DatetimeField(null=True)
    resolved_by = fields.ForeignKeyField(
        "models.User", related_name="resolved_alerts", null=True, on_delete=fields.SET_NULL
    )

    class Meta:
        table = "security_alerts"


class SecurityAttack(BaseModel):
    type = fields.CharField(max_length=64, index=True)
    payload = fields.TextField()
    ip_address = fields.CharField(max_length=64, null=True)
    user_agent = fields.CharField(max_length=512, null=True)
    status = fields.CharEnumField(AttackStatus, max_length=16, default=AttackStatus.DETECTED)
    description = fields.TextField(null=True)

    class Meta:
        table = "security_attacks"
