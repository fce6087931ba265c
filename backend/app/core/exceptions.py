# backend/app/core/exceptions.py
"""
Error kinds raised by the recovery services.

Each kind carries the HTTP status it maps to; the handler registered in
main.py renders them as {"detail": message}. Store and driver errors are
never wrapped here and propagate unchanged.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse


class RecoveryError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequest(RecoveryError):
    """Bad user input or a failed downstream dispatch (SMS, admin code, missing backup)."""
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(RecoveryError):
    """Missing/expired session or a keyshare that was never issued to the phone."""
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFound(RecoveryError):
    status_code = status.HTTP_404_NOT_FOUND


async def recovery_error_handler(request: Request, exc: RecoveryError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
