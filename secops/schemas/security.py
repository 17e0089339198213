from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from secops.models.ip_access import IPRuleType
from secops.models.security import AlertSeverity, AlertStatus, AttackStatus


class IPRulePayload(BaseModel):
    # Format is checked by the evaluator so the error message stays uniform
    ip_address: str = Field(min_length=1, max_length=64)
    type: IPRuleType
    description: Optional[str] = Field(default=None, max_length=1000)


class AlertCreate(BaseModel):
    severity: AlertSeverity
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)


class AlertUpdate(BaseModel):
    id: UUID
    status: AlertStatus
    resolved_by: Optional[UUID] = None


class AttackCreate(BaseModel):
    type: str = Field(min_length=1, max_length=64)
    payload: str = Field(min_length=1)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    status: AttackStatus = AttackStatus.DETECTED
    description: Optional[str] = None
