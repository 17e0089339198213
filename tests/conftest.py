"""
Pytest configuration and fixtures for SecOps Guard tests
"""

import os
import re

# Test-friendly environment prior to importing the app
os.environ.setdefault("APP_ENV", "test")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from tortoise import Tortoise  # noqa: E402

from secops.db import build_tortoise_config  # noqa: E402
from secops.deps import get_ip_evaluator, get_otp_manager  # noqa: E402
from secops.errors import DeliveryFailed  # noqa: E402
from secops.models.user import Role, User  # noqa: E402
from secops.services.ip_access import IPAccessEvaluator  # noqa: E402
from secops.services.otp import OTPManager  # noqa: E402
from secops.services.security import create_token  # noqa: E402


class RecordingSender:
    """Stands in for the email provider and keeps every message it was given."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, recipient: str, subject: str, body: str) -> None:
        if self.fail:
            raise DeliveryFailed("provider unavailable")
        self.sent.append((recipient, subject, body))

    def last_code(self) -> str:
        _, _, body = self.sent[-1]
        return re.search(r"\b(\d{6})\b", body).group(1)


@pytest.fixture(scope="function")
async def db():
    """Fresh in-memory SQLite database for each test."""
    await Tortoise.init(config=build_tortoise_config("sqlite://:memory:"))
    await Tortoise.generate_schemas()
    try:
        yield
    finally:
        await Tortoise.close_connections()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def failing_sender():
    return RecordingSender(fail=True)


@pytest.fixture
def otp_manager(db, sender):
    return OTPManager(sender)


@pytest.fixture
def evaluator(db):
    return IPAccessEvaluator(default_policy="allow")


@pytest.fixture
async def admin(db):
    return await User.create(email="admin@example.com", name="Admin", role=Role.ADMIN)


@pytest.fixture
async def analyst(db):
    return await User.create(email="analyst@example.com", name="Analyst", role=Role.USER)


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_token(str(admin.id))}"}


@pytest.fixture
def analyst_headers(analyst):
    return {"Authorization": f"Bearer {create_token(str(analyst.id))}"}


@pytest.fixture
async def client(db, sender):
    from secops.main import app

    app.dependency_overrides[get_otp_manager] = lambda: OTPManager(sender)
    app.dependency_overrides[get_ip_evaluator] = lambda: IPAccessEvaluator(default_policy="allow")
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
