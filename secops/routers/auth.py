import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from slowapi.util import get_remote_address

from secops.config import settings
from secops.core.rate_limit import limiter
from secops.core.store import bounded
from secops.deps import get_otp_manager
from secops.models.user import User
from secops.schemas.auth import OTPRequestPayload, OTPVerifyPayload, TokenOut
from secops.services.audit import SecurityEvents, audit
from secops.services.otp import OTPManager, normalize_email
from secops.services.security import AuthUser, create_token, require_user

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Same body whether or not the account exists
OTP_ACK = {"success": True, "message": "If the account exists, a verification code has been sent"}
INVALID_OTP = "Invalid or expired code"


@router.post("/request-otp")
@limiter.limit(settings.OTP_RATE_LIMIT)
async def request_otp(
    request: Request,
    payload: OTPRequestPayload = Body(...),
    otp: OTPManager = Depends(get_otp_manager),
):
    """Email a one-time passcode to a registered account."""
    email = normalize_email(payload.email)
    ip = get_remote_address(request)

    user = await bounded(User.filter(email=email).first(), "look up user")
    if not user:
        log.info("OTP requested for unknown email %s", email)
        await audit(SecurityEvents.OTP_REQUEST, f"OTP requested for unknown email {email}", ip=ip)
        return OTP_ACK

    # A provider outage surfaces as 502 here, so it reveals that the account exists
    await otp.issue(email, ip=ip)
    return OTP_ACK


@router.post("/verify-otp", response_model=TokenOut)
@limiter.limit(settings.OTP_RATE_LIMIT)
async def verify_otp(
    request: Request,
    payload: OTPVerifyPayload = Body(...),
    otp: OTPManager = Depends(get_otp_manager),
):
    """Consume a passcode and return an access token."""
    email = normalize_email(payload.email)
    result = await otp.verify(email, payload.otp, ip=get_remote_address(request))
    if not result.valid:
        raise HTTPException(status_code=400, detail=INVALID_OTP)

    user = await bounded(User.filter(email=email).first(), "look up user")
    if not user:
        # Account removed after the code was issued
        raise HTTPException(status_code=400, detail=INVALID_OTP)
    return TokenOut(access_token=create_token(str(user.id)))


@router.get("/me")
async def me(auth: AuthUser = Depends(require_user)):
    return {"id": auth.user_id, "email": auth.email, "role": auth.role.value}
