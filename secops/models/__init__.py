# Import all models for Tortoise ORM registration
from .base import BaseModel
from .user import User, Role
from .otp import OTPRecord
from .ip_access import IPAccessRule, IPRuleType
from .security import (
    SecurityLog,
    SecurityAlert,
    SecurityAttack,
    AlertSeverity,
    AlertStatus,
    AttackStatus,
)

__all__ = [
    "BaseModel",
    "User",
    "Role",
    "OTPRecord",
    "IPAccessRule",
    "IPRuleType",
    "SecurityLog",
    "SecurityAlert",
    "SecurityAttack",
    "AlertSeverity",
    "AlertStatus",
    "AttackStatus",
]
