# backend/app/api/v1/router.py
from fastapi import APIRouter
from backend.app.api.v1.endpoints import keyless_backup, otp

api_router = APIRouter()
api_router.include_router(otp.router, prefix="/otp", tags=["otp"])
api_router.include_router(keyless_backup.router, prefix="/keyless-backup", tags=["keyless-backup"])
