"""
Process-wide service instances, injected into routes with Depends.

Tests swap them through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from secops.services.ip_access import IPAccessEvaluator
from secops.services.notifications import NotificationSender, ResendEmailSender
from secops.services.otp import OTPManager


@lru_cache
def get_sender() -> NotificationSender:
    return ResendEmailSender()


def get_otp_manager(sender: NotificationSender = Depends(get_sender)) -> OTPManager:
    return OTPManager(sender)


@lru_cache
def get_ip_evaluator() -> IPAccessEvaluator:
    return IPAccessEvaluator()
