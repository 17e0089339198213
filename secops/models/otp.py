from tortoise import fields
from tortoise import timezone
from .base import BaseModel


class OTPRecord(BaseModel):
    email = fields.CharField(max_length=255, index=True)
    code = fields.CharField(max_length=6)
    expires_at = fields.DatetimeField()
    used = fields.BooleanField(default=False)

    def is_expired(self, now=None) -> bool:
        return (now or timezone.now()) >= self.expires_at

    class Meta:
        table = "otp_records"
