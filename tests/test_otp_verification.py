from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from backend.app.models.otp_code import OtpCode
from backend.app.models.otp_session import OtpSession
from backend.app.repositories.otp_codes import OtpCodeRepository
from backend.app.schemas.auth import SessionTokenPayload
from backend.app.security.jwt import decode_access_token
from backend.app.services.keyshare_resolver import KeyshareResolver
from backend.app.services.otp import OtpService
from conftest import PHONE

REJECTED = {"success": False, "message": "Invalid or expired OTP code"}


async def test_happy_path_send_verify_and_replay(db, sms_sender, policy):
    service = OtpService(db, sms_sender, policy)
    await service.send_otp(PHONE)
    code = sms_sender.last_code(PHONE)

    result = await service.verify_otp(PHONE, code)

    assert result["success"] is True
    assert result["message"] == "OTP code verified successfully"
    assert result["token"]
    assert result["session_id"]
    assert len(result["keyshare"]) == 64

    # Single use
    assert await service.verify_otp(PHONE, code) == REJECTED


async def test_wrong_code_is_a_soft_failure(db, sms_sender, policy):
    service = OtpService(db, sms_sender, policy)
    await service.send_otp(PHONE)
    code = sms_sender.last_code(PHONE)
    wrong = "100000" if code != "100000" else "100001"

    assert await service.verify_otp(PHONE, wrong) == REJECTED
    # The real code is still usable afterwards
    assert (await service.verify_otp(PHONE, code))["success"] is True


async def test_expired_code_never_verifies(db, sms_sender, policy):
    db.add(OtpCode(
        phone=PHONE,
        code="424242",
        keyshare="a" * 64,
        is_valid=True,
        is_emergency=False,
        expires_at=datetime.now(timezone.utc) - timedelta(seconds=1),
    ))
    await db.commit()

    assert await OtpService(db, sms_sender, policy).verify_otp(PHONE, "424242") == REJECTED


async def test_superseded_code_is_rejected(db, sms_sender, policy):
    service = OtpService(db, sms_sender, policy)
    await service.send_otp(PHONE)
    first = sms_sender.last_code(PHONE)
    await service.send_otp(PHONE)
    second = sms_sender.last_code(PHONE)

    if first != second:
        assert await service.verify_otp(PHONE, first) == REJECTED
    assert (await service.verify_otp(PHONE, second))["success"] is True


async def test_verification_marks_code_used_and_binds_keyshare(db, session_factory, sms_sender, policy):
    service = OtpService(db, sms_sender, policy)
    await service.send_otp(PHONE)
    result = await service.verify_otp(PHONE, sms_sender.last_code(PHONE))

    async with session_factory() as check:
        record = await check.scalar(select(OtpCode).where(OtpCode.phone == PHONE))
        session = await check.get(OtpSession, result["session_id"])

    assert record.is_valid is False
    assert record.keyshare == result["keyshare"]
    assert session.subject_phone == PHONE
    assert session.bound_keyshare == result["keyshare"]


async def test_keyshare_stays_stable_across_rounds(db, sms_sender, policy):
    service = OtpService(db, sms_sender, policy)
    keyshares = set()
    for _ in range(3):
        await service.send_otp(PHONE)
        result = await service.verify_otp(PHONE, sms_sender.last_code(PHONE))
        keyshares.add(result["keyshare"])

    assert len(keyshares) == 1
    assert keyshares == {await KeyshareResolver(db).claim_or_get_keyshare(PHONE)}


async def test_verification_writes_through_keyshare_of_record(db, session_factory, sms_sender, policy):
    # A legacy row without a keyshare still gets the phone's keyshare of record
    bound = await KeyshareResolver(db).claim_or_get_keyshare(PHONE)
    db.add(OtpCode(
        phone=PHONE,
        code="135790",
        keyshare=None,
        is_valid=True,
        is_emergency=False,
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=5),
    ))
    await db.commit()

    result = await OtpService(db, sms_sender, policy).verify_otp(PHONE, "135790")

    assert result["keyshare"] == bound
    async with session_factory() as check:
        record = await check.scalar(select(OtpCode).where(OtpCode.code == "135790"))
    assert record.keyshare == bound


async def test_session_token_carries_phone_session_and_keyshare(db, sms_sender, policy):
    service = OtpService(db, sms_sender, policy)
    await service.send_otp(PHONE)
    result = await service.verify_otp(PHONE, sms_sender.last_code(PHONE))

    claims = SessionTokenPayload(**decode_access_token(result["token"]))

    assert claims.sub == PHONE
    assert claims.clientId == PHONE
    assert claims.appVersion == "1.0.0"
    assert claims.sessionId == result["session_id"]
    assert claims.keyshare == result["keyshare"]


async def test_concurrent_verifications_consume_code_once(db, session_factory, sms_sender, policy):
    await OtpService(db, sms_sender, policy).send_otp(PHONE)
    code = sms_sender.last_code(PHONE)

    async with session_factory() as first, session_factory() as second:
        results = await asyncio.gather(
            OtpService(first, sms_sender, policy).verify_otp(PHONE, code),
            OtpService(second, sms_sender, policy).verify_otp(PHONE, code),
        )

    assert sorted(r["success"] for r in results) == [False, True]
    assert [r for r in results if not r["success"]] == [REJECTED]

    async with session_factory() as check:
        sessions = await check.scalar(select(func.count()).select_from(OtpSession))
    assert sessions == 1


async def test_already_consumed_code_cannot_be_marked_used_again(db, sms_sender, policy):
    await OtpService(db, sms_sender, policy).send_otp(PHONE)
    record = await db.scalar(select(OtpCode).where(OtpCode.phone == PHONE))
    otp_id, keyshare = record.id, record.keyshare
    repo = OtpCodeRepository(db)

    assert await repo.mark_used_and_set_keyshare(otp_id, keyshare) == 1
    assert await repo.mark_used_and_set_keyshare(otp_id, keyshare) == 0
