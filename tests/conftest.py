from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Tuple

import pytest

from backend.app.core.config import RecoveryPolicy
from backend.app.db import init_models
from backend.app.db.session import create_engine_for_url, create_session_factory
from backend.app.services.sms import SmsDeliveryError

ADMIN_CODE = "admin-secret-42"
PHONE = "+573001234567"
WALLET = "0xA11CE000000000000000000000000000000000001"


class FakeSmsSender:
    """Records every message; set fail_with to make the next sends fail."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []
        self.fail_with: Optional[str] = None

    async def send(self, to: str, body: str) -> None:
        if self.fail_with is not None:
            raise SmsDeliveryError(self.fail_with, code="21211")
        self.sent.append((to, body))

    def last_code(self, to: str) -> str:
        body = next(body for phone, body in reversed(self.sent) if phone == to)
        # "Your verification code is: 123456. Valid for 5 minutes."
        return body.split(": ", 1)[1][:6]


@pytest.fixture
async def engine(tmp_path):
    # File-backed so that separate sessions use separate connections
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def policy() -> RecoveryPolicy:
    return RecoveryPolicy(emergency_admin_code=ADMIN_CODE)


@pytest.fixture
def sms_sender() -> FakeSmsSender:
    return FakeSmsSender()


def as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes; stored values are UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
