"""
One-time passcode lifecycle: issue, deliver, verify, expire, single use.

A record moves PENDING -> CONSUMED on a successful verify, or becomes EXPIRED
implicitly once expires_at passes. Issuing a new code for an email deletes
every unused record for that email. Only the newest record for an email is
ever considered by verify().
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from tortoise import timezone
from tortoise.transactions import in_transaction

from secops.config import settings
from secops.core.store import bounded
from secops.errors import DeliveryFailed, PersistenceError, ValidationError
from secops.models.otp import OTPRecord
from secops.services.audit import SecurityEvents, audit
from secops.services.metrics import record_otp_issued, record_otp_verification
from secops.services.notifications import NotificationSender, render_otp_email

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your security verification code"


def normalize_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("Email is required")
    return email


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    # Internal only; never shown to the client
    reason: str


class OTPManager:
    def __init__(
        self,
        sender: NotificationSender,
        ttl_minutes: int | None = None,
        send_timeout: float | None = None,
    ):
        self.sender = sender
        self.ttl = timedelta(minutes=ttl_minutes or settings.OTP_TTL_MINUTES)
        # Outer bound on the injected sender, above its own HTTP timeout
        self.send_timeout = send_timeout or settings.EMAIL_TIMEOUT_SECONDS + 1.0

    @staticmethod
    def generate() -> str:
        """Return a uniformly random code in 100000-999999 from the system CSPRNG."""
        return str(100000 + secrets.randbelow(900000))

    async def _replace_pending(self, email: str, code: str) -> OTPRecord:
        async with in_transaction() as conn:
            superseded = await OTPRecord.filter(email=email, used=False).using_db(conn).delete()
            record = await OTPRecord.create(
                email=email,
                code=code,
                expires_at=timezone.now() + self.ttl,
                using_db=conn,
            )
        if superseded:
            logger.info("Superseded %s pending passcode(s) for %s", superseded, email)
        return record

    async def issue(self, email: str, ip: str | None = None) -> str:
        """Store a fresh code for ``email`` and email it.

        The caller must already know ``email`` belongs to an account. Returns
        the code for server-side use only. Raises PersistenceError or
        DeliveryFailed; on delivery failure the stored code is discarded.
        """
        email = normalize_email(email)
        code = self.generate()
        try:
            record = await bounded(self._replace_pending(email, code), "store one-time passcode")
        except PersistenceError:
            record_otp_issued("persistence_failed")
            raise

        try:
            await asyncio.wait_for(
                self.sender.send(email, OTP_SUBJECT, render_otp_email(code, int(self.ttl.total_seconds() // 60))),
                timeout=self.send_timeout,
            )
        except (DeliveryFailed, asyncio.TimeoutError) as exc:
            record_otp_issued("delivery_failed")
            await self._discard(record)
            if isinstance(exc, DeliveryFailed):
                raise
            raise DeliveryFailed("Timed out sending verification code") from exc

        record_otp_issued("sent")
        await audit(SecurityEvents.OTP_REQUEST, f"OTP requested for {email}", ip=ip)
        logger.info("OTP issued for %s (expires %s)", email, record.expires_at.isoformat())
        return code

    async def _discard(self, record: OTPRecord) -> None:
        try:
            await bounded(OTPRecord.filter(id=record.id).delete(), "discard undelivered passcode")
        except PersistenceError:
            # Nobody received the code, so the leftover row is unusable in practice
            logger.exception("Could not discard undelivered passcode %s", record.id)

    async def verify(self, email: str, code: str, ip: str | None = None) -> VerificationResult:
        email = normalize_email(email)
        candidate = str(code or "")

        record = await bounded(
            OTPRecord.filter(email=email).order_by("-created_at").first(),
            "look up one-time passcode",
        )
        if record is None:
            result = VerificationResult(False, "no_record")
        elif record.used:
            result = VerificationResult(False, "already_used")
        elif record.is_expired():
            result = VerificationResult(False, "expired")
        elif not secrets.compare_digest(record.code.encode(), candidate.encode()):
            result = VerificationResult(False, "code_mismatch")
        else:
            # Compare-and-set on used and expiry; only one concurrent caller wins
            updated = await bounded(
                OTPRecord.filter(id=record.id, used=False, expires_at__gt=timezone.now()).update(used=True),
                "consume one-time passcode",
            )
            result = VerificationResult(updated == 1, "ok" if updated == 1 else "race_lost")

        record_otp_verification(result.reason)
        if result.valid:
            await audit(SecurityEvents.OTP_VERIFICATION, f"Successful OTP verification for {email}", ip=ip)
        else:
            logger.info("OTP verification failed for %s: %s", email, result.reason)
            await audit(
                SecurityEvents.OTP_VERIFICATION,
                f"Failed OTP verification attempt for {email} ({result.reason})",
                ip=ip,
            )
        return result
