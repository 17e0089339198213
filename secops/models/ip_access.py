from enum import Enum

from tortoise import fields
from .base import BaseModel


class IPRuleType(str, Enum):
    ALLOWED = "ALLOWED"
    BLOCKED = "BLOCKED"


class IPAccessRule(BaseModel):
    ip_address = fields.CharField(max_length=15, unique=True)
    type = fields.CharEnumField(IPRuleType, max_length=16)
    description = fields.TextField(null=True)
    # Last admin to create or update the rule
    created_by = fields.ForeignKeyField(
        "models.User", related_name="ip_rules", null=True, on_delete=fields.SET_NULL
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "ip_address": self.ip_address,
            "type": self.type.value,
            "description": self.description,
            "created_by": str(self.created_by_id) if self.created_by_id else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    class Meta:
        table = "ip_access_rules"
