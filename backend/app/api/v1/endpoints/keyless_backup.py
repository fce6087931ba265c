# backend/app/api/v1/endpoints/keyless_backup.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, Response, status

from backend.app.api import deps
from backend.app.models.otp_session import OtpSession
from backend.app.schemas.keyless_backup import (
    CheckPhoneRequest,
    CheckPhoneResponse,
    KeylessBackupCreate,
    KeylessBackupResponse,
    LinkWalletRequest,
)
from backend.app.services.keyless_backup import KeylessBackupService

router = APIRouter()


# 1. CREATE OR UPDATE BACKUP
@router.post("/", response_model=KeylessBackupResponse)
async def create_or_update_backup(
        backup_in: KeylessBackupCreate,
        service: KeylessBackupService = Depends(deps.get_backup_service),
        session: OtpSession = Depends(deps.require_session),
):
    return await service.create_or_update(
        backup_in.wallet_address,
        backup_in.encrypted_mnemonic,
        backup_in.encryption_address,
    )


# 2. LINK WALLET TO PHONE
# Session is checked by the service together with the keyshare
@router.post("/link-wallet", response_model=KeylessBackupResponse)
async def link_wallet_to_phone(
        request: LinkWalletRequest,
        x_session_id: Optional[str] = Header(None, alias="X-Session-Id"),
        service: KeylessBackupService = Depends(deps.get_backup_service),
):
    return await service.link_wallet_to_phone(
        request.phone,
        request.wallet_address,
        request.keyshare,
        x_session_id,
    )


# 3. CHECK PHONE (no auth)
@router.post("/check-phone", response_model=CheckPhoneResponse)
async def check_phone(
        request: CheckPhoneRequest,
        service: KeylessBackupService = Depends(deps.get_backup_service),
):
    return await service.check_phone_exists(request.phone, request.wallet_address)


# 4. GET BACKUP
@router.get("/{wallet_address}", response_model=KeylessBackupResponse)
async def read_backup(
        wallet_address: str,
        service: KeylessBackupService = Depends(deps.get_backup_service),
        session: OtpSession = Depends(deps.require_session),
):
    return await service.get_by_wallet(wallet_address)


# 5. DELETE BACKUP
@router.delete("/{wallet_address}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_backup(
        wallet_address: str,
        service: KeylessBackupService = Depends(deps.get_backup_service),
        session: OtpSession = Depends(deps.require_session),
):
    await service.remove(wallet_address)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
