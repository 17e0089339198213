# tests/test_otp.py
"""One-time passcode issuance, verification, expiry and single use"""

import asyncio
import re
from datetime import timedelta

import pytest
from tortoise import timezone

from secops.errors import DeliveryFailed, ValidationError
from secops.models.otp import OTPRecord
from secops.models.security import SecurityLog
from secops.services.otp import OTPManager


def _fixed_codes(monkeypatch, *codes):
    it = iter(codes)
    monkeypatch.setattr(OTPManager, "generate", staticmethod(lambda: next(it)))


def test_generate_is_six_digit_numeric():
    for _ in range(2000):
        code = OTPManager.generate()
        assert re.fullmatch(r"\d{6}", code)
        assert 100000 <= int(code) <= 999999


@pytest.mark.asyncio
async def test_issue_persists_and_sends_once(otp_manager, sender):
    code = await otp_manager.issue(" A@X.com ")

    assert len(sender.sent) == 1
    recipient, subject, body = sender.sent[0]
    assert recipient == "a@x.com"
    assert code in body

    records = await OTPRecord.filter(email="a@x.com")
    assert len(records) == 1
    rec = records[0]
    assert rec.code == code
    assert rec.used is False
    ttl = rec.expires_at - rec.created_at
    assert timedelta(minutes=9, seconds=58) <= ttl <= timedelta(minutes=10, seconds=1)


@pytest.mark.asyncio
async def test_scenario_verify_within_window_then_replay(otp_manager, monkeypatch):
    _fixed_codes(monkeypatch, "482913")
    assert await otp_manager.issue("a@x.com") == "482913"

    first = await otp_manager.verify("a@x.com", "482913")
    assert first.valid

    again = await otp_manager.verify("a@x.com", "482913")
    assert not again.valid
    assert again.reason == "already_used"

    rec = await OTPRecord.get(email="a@x.com")
    assert rec.used is True


@pytest.mark.asyncio
async def test_second_issue_invalidates_first(otp_manager, monkeypatch):
    _fixed_codes(monkeypatch, "111111", "222222")
    first = await otp_manager.issue("a@x.com")
    second = await otp_manager.issue("a@x.com")

    assert await OTPRecord.filter(email="a@x.com").count() == 1
    assert not (await otp_manager.verify("a@x.com", first)).valid
    assert (await otp_manager.verify("a@x.com", second)).valid


@pytest.mark.asyncio
async def test_new_issue_keeps_consumed_history(otp_manager, monkeypatch):
    _fixed_codes(monkeypatch, "111111", "222222")
    await otp_manager.issue("a@x.com")
    assert (await otp_manager.verify("a@x.com", "111111")).valid

    await otp_manager.issue("a@x.com")
    assert await OTPRecord.filter(email="a@x.com").count() == 2
    assert not (await otp_manager.verify("a@x.com", "111111")).valid
    assert (await otp_manager.verify("a@x.com", "222222")).valid


@pytest.mark.asyncio
async def test_expired_code_is_rejected(otp_manager):
    code = await otp_manager.issue("a@x.com")
    await OTPRecord.filter(email="a@x.com").update(expires_at=timezone.now() - timedelta(seconds=1))

    result = await otp_manager.verify("a@x.com", code)
    assert not result.valid
    assert result.reason == "expired"
    rec = await OTPRecord.get(email="a@x.com")
    assert rec.used is False


@pytest.mark.asyncio
async def test_wrong_code_does_not_burn_the_record(otp_manager, monkeypatch):
    _fixed_codes(monkeypatch, "123456")
    await otp_manager.issue("a@x.com")

    wrong = await otp_manager.verify("a@x.com", "654321")
    assert not wrong.valid
    assert wrong.reason == "code_mismatch"
    assert (await otp_manager.verify("a@x.com", "123456")).valid


@pytest.mark.asyncio
async def test_codes_are_scoped_to_email(otp_manager, monkeypatch):
    _fixed_codes(monkeypatch, "123456")
    await otp_manager.issue("a@x.com")

    result = await otp_manager.verify("b@x.com", "123456")
    assert not result.valid
    assert result.reason == "no_record"


@pytest.mark.asyncio
async def test_concurrent_verifies_consume_once(otp_manager):
    code = await otp_manager.issue("a@x.com")

    results = await asyncio.gather(
        otp_manager.verify("a@x.com", code),
        otp_manager.verify("a@x.com", code),
    )
    assert sorted(r.valid for r in results) == [False, True]


@pytest.mark.asyncio
async def test_delivery_failure_raises_and_leaves_no_code(db, failing_sender):
    manager = OTPManager(failing_sender)
    with pytest.raises(DeliveryFailed):
        await manager.issue("a@x.com")
    assert await OTPRecord.filter(email="a@x.com").count() == 0


@pytest.mark.asyncio
async def test_slow_sender_times_out_as_delivery_failure(db):
    class SlowSender:
        async def send(self, recipient, subject, body):
            await asyncio.sleep(5)

    manager = OTPManager(SlowSender(), send_timeout=0.05)
    with pytest.raises(DeliveryFailed):
        await manager.issue("a@x.com")
    assert await OTPRecord.filter(email="a@x.com").count() == 0


@pytest.mark.asyncio
async def test_blank_email_is_rejected(otp_manager, sender):
    with pytest.raises(ValidationError):
        await otp_manager.issue("   ")
    assert sender.sent == []


@pytest.mark.asyncio
async def test_audit_trail(otp_manager, monkeypatch):
    _fixed_codes(monkeypatch, "123456")
    await otp_manager.issue("a@x.com", ip="10.0.0.1")
    await otp_manager.verify("a@x.com", "000000", ip="10.0.0.1")
    await otp_manager.verify("a@x.com", "123456", ip="10.0.0.1")

    logs = await SecurityLog.all().order_by("created_at")
    assert [log.type for log in logs] == ["OTP_REQUEST", "OTP_VERIFICATION", "OTP_VERIFICATION"]
    assert "Failed" in logs[1].message
    assert "Successful" in logs[2].message
    assert all(log.ip == "10.0.0.1" for log in logs)


@pytest.mark.asyncio
async def test_code_expiring_mid_verify_is_not_consumed(otp_manager, monkeypatch):
    code = await otp_manager.issue("a@x.com")
    await OTPRecord.filter(email="a@x.com").update(expires_at=timezone.now() - timedelta(seconds=1))
    # The in-memory expiry check still sees the code as live
    monkeypatch.setattr(OTPRecord, "is_expired", lambda self, now=None: False)

    result = await otp_manager.verify("a@x.com", code)
    assert not result.valid
    rec = await OTPRecord.get(email="a@x.com")
    assert rec.used is False


@pytest.mark.asyncio
async def test_hung_security_log_does_not_block_issue(otp_manager, sender, monkeypatch):
    from secops.config import settings

    async def hung_create(*args, **kwargs):
        await asyncio.sleep(30)

    monkeypatch.setattr(settings, "STORE_TIMEOUT_SECONDS", 0.1)
    monkeypatch.setattr(SecurityLog, "create", hung_create)

    code = await asyncio.wait_for(otp_manager.issue("a@x.com"), 2)
    assert len(sender.sent) == 1
    result = await asyncio.wait_for(otp_manager.verify("a@x.com", code), 2)
    assert result.valid
