from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from backend.app.core.config import RecoveryPolicy
from backend.app.core.exceptions import InvalidRequest
from backend.app.models.keyshare_ledger import KeyshareLedger
from backend.app.models.otp_code import OtpCode
from backend.app.repositories.otp_codes import OtpCodeRepository
from backend.app.services import otp as otp_module
from backend.app.services.otp import OtpService
from conftest import PHONE, as_utc


async def _codes(session_factory, phone=PHONE):
    async with session_factory() as check:
        result = await check.execute(
            select(OtpCode).where(OtpCode.phone == phone).order_by(OtpCode.id)
        )
        return list(result.scalars().all())


async def test_send_otp_stores_code_and_texts_it(db, session_factory, sms_sender, policy):
    result = await OtpService(db, sms_sender, policy).send_otp(PHONE)

    assert result == {"success": True, "message": "OTP code sent successfully"}

    [record] = await _codes(session_factory)
    assert record.is_valid is True
    assert record.is_emergency is False
    assert len(record.code) == 6 and record.code.isdigit()
    assert 100000 <= int(record.code) <= 999999
    # Minted eagerly at issuance
    assert record.keyshare is not None and len(record.keyshare) == 64

    assert sms_sender.sent == [
        (PHONE, f"Your verification code is: {record.code}. Valid for 5 minutes.")
    ]


async def test_send_otp_expires_after_configured_minutes(db, session_factory, sms_sender, policy):
    before = datetime.now(timezone.utc)
    await OtpService(db, sms_sender, policy).send_otp(PHONE)

    [record] = await _codes(session_factory)
    expires_at = as_utc(record.expires_at)
    assert before + timedelta(minutes=5) <= expires_at <= datetime.now(timezone.utc) + timedelta(minutes=5)


async def test_resend_leaves_one_valid_normal_code(db, session_factory, sms_sender, policy):
    service = OtpService(db, sms_sender, policy)
    for _ in range(3):
        await service.send_otp(PHONE)

    records = await _codes(session_factory)
    valid = [r for r in records if r.is_valid and not r.is_emergency]
    assert len(records) == 3
    assert len(valid) == 1
    assert valid[0].id == records[-1].id


async def test_resend_keeps_the_same_keyshare(db, session_factory, sms_sender, policy):
    service = OtpService(db, sms_sender, policy)
    await service.send_otp(PHONE)
    await service.send_otp(PHONE)

    records = await _codes(session_factory)
    assert len({r.keyshare for r in records}) == 1


async def test_resend_never_invalidates_emergency_codes(db, session_factory, sms_sender, policy):
    db.add(OtpCode(
        phone=PHONE,
        code="777777",
        keyshare="k" * 64,
        is_valid=True,
        is_emergency=True,
        expires_at=datetime.now(timezone.utc) + timedelta(days=7),
    ))
    await db.commit()

    service = OtpService(db, sms_sender, policy)
    await service.send_otp(PHONE)
    await service.send_otp(PHONE)

    emergency = [r for r in await _codes(session_factory) if r.is_emergency]
    assert len(emergency) == 1
    assert emergency[0].is_valid is True


async def test_send_failure_withdraws_code_and_raises(db, session_factory, sms_sender, policy):
    sms_sender.fail_with = "The 'To' number is not a valid phone number."

    with pytest.raises(InvalidRequest) as exc:
        await OtpService(db, sms_sender, policy).send_otp(PHONE)

    assert exc.value.message == "Error sending OTP code: The 'To' number is not a valid phone number."
    [record] = await _codes(session_factory)
    assert record.is_valid is False


async def test_custom_expiry_is_rendered_in_sms(db, sms_sender):
    policy = RecoveryPolicy(otp_expiration_minutes=10)
    await OtpService(db, sms_sender, policy).send_otp(PHONE)

    assert sms_sender.sent[0][1].endswith("Valid for 10 minutes.")


async def test_concurrent_sends_share_one_keyshare_and_one_valid_code(session_factory, sms_sender, policy):
    sessions = [session_factory() for _ in range(4)]
    try:
        await asyncio.gather(*(OtpService(s, sms_sender, policy).send_otp(PHONE) for s in sessions))
    finally:
        for s in sessions:
            await s.close()

    records = await _codes(session_factory)
    assert len(records) == 4
    assert len({r.keyshare for r in records}) == 1
    # The newest insert survives
    valid = [r for r in records if r.is_valid and not r.is_emergency]
    assert [r.id for r in valid] == [max(r.id for r in records)]

    async with session_factory() as check:
        assert await check.scalar(select(func.count()).select_from(KeyshareLedger)) == 1
        ledger = await check.scalar(select(KeyshareLedger.keyshare))
    assert ledger == records[0].keyshare


async def test_normal_code_never_equals_emergency_code(db, session_factory, sms_sender, policy, monkeypatch):
    draws = iter(["777777", "777777", "246810"])
    monkeypatch.setattr(otp_module, "generate_otp_code", lambda: next(draws))

    await OtpService(db, sms_sender, policy).send_otp(PHONE)

    [record] = await _codes(session_factory)
    assert record.code == "246810"
    assert sms_sender.last_code(PHONE) == "246810"


async def test_withdrawing_a_code_spares_emergency_grant_with_same_digits(db, session_factory):
    now = datetime.now(timezone.utc)
    db.add_all([
        OtpCode(phone=PHONE, code="777777", keyshare="k" * 64, is_valid=True,
                is_emergency=True, expires_at=now + timedelta(days=7)),
        OtpCode(phone=PHONE, code="777777", keyshare="k" * 64, is_valid=True,
                is_emergency=False, expires_at=now + timedelta(minutes=5)),
    ])
    await db.commit()

    assert await OtpCodeRepository(db).invalidate_by_phone_and_code(PHONE, "777777") == 1

    records = await _codes(session_factory)
    assert [(r.is_emergency, r.is_valid) for r in records] == [(True, True), (False, False)]
