"""
Transactional email delivery for one-time passcodes.

Delivery goes through the Resend HTTP API. Any failure, including a missing
API key, raises DeliveryFailed; nothing here pretends a message was sent.
"""

import logging
from typing import Protocol

import httpx

from secops.config import settings
from secops.errors import DeliveryFailed

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    async def send(self, recipient: str, subject: str, body: str) -> None:
        ...


class ResendEmailSender:
    def __init__(
        self,
        api_key: str | None = None,
        sender: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.sender = sender or settings.EMAIL_FROM
        self.api_url = api_url or settings.RESEND_API_URL
        self.timeout = timeout if timeout is not None else settings.EMAIL_TIMEOUT_SECONDS
        self.transport = transport

    async def send(self, recipient: str, subject: str, body: str) -> None:
        if not self.api_key:
            raise DeliveryFailed("Email delivery is not configured (RESEND_API_KEY missing)")

        payload = {
            "from": self.sender,
            "to": recipient,
            "subject": subject,
            "html": body,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("Email API timed out sending to %s", recipient)
            raise DeliveryFailed("Timed out sending email") from exc
        except httpx.HTTPError as exc:
            logger.error("Email API request failed for %s: %s", recipient, exc)
            raise DeliveryFailed("Failed to send email") from exc

        if r.status_code >= 400:
            logger.error("Email API rejected message to %s: %s %s", recipient, r.status_code, r.text)
            raise DeliveryFailed(f"Email provider returned {r.status_code}")
        logger.info("Email sent to %s", recipient)


def render_otp_email(code: str, ttl_minutes: int) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h2 style="text-align: center;">Security Verification Code</h2>
      <p>Use the following code to complete your login:</p>
      <div style="background-color: #f5f5f5; padding: 15px; text-align: center; font-size: 24px;
                  font-weight: bold; letter-spacing: 5px; margin: 20px 0;">
        {code}
      </div>
      <p>This code will expire in {ttl_minutes} minutes.</p>
      <p>If you did not request this code, contact security immediately.</p>
    </div>
    """
