# backend/app/api/v1/endpoints/otp.py
from fastapi import APIRouter, Depends

from backend.app.api import deps
from backend.app.schemas.auth import ClientTokenPayload
from backend.app.schemas.otp import (
    EmergencyRecoveryRequest,
    EmergencyRecoveryResponse,
    SendOtpRequest,
    SendOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from backend.app.services.emergency import EmergencyRecoveryService
from backend.app.services.otp import OtpService

router = APIRouter()


# 1. SEND CODE
@router.post("/send", response_model=SendOtpResponse)
async def send_otp(
        request: SendOtpRequest,
        service: OtpService = Depends(deps.get_otp_service),
        client: ClientTokenPayload = Depends(deps.get_current_client),
):
    return await service.send_otp(request.phone)


# 2. VERIFY CODE
# A wrong code is a 200 with success=false, not an error
@router.post("/verify", response_model=VerifyOtpResponse)
async def verify_otp(
        request: VerifyOtpRequest,
        service: OtpService = Depends(deps.get_otp_service),
        client: ClientTokenPayload = Depends(deps.get_current_client),
):
    return await service.verify_otp(request.phone, request.code)


# 3. EMERGENCY RECOVERY (admin code)
@router.post("/emergency-recovery", response_model=EmergencyRecoveryResponse)
async def emergency_recovery(
        request: EmergencyRecoveryRequest,
        service: EmergencyRecoveryService = Depends(deps.get_emergency_service),
):
    return await service.emergency_recovery(
        request.phone,
        request.wallet_address,
        request.admin_code,
    )
