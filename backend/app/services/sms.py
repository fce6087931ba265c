# backend/app/services/sms.py
"""
SMS delivery.

Senders expose a single coroutine, send(to, body), which returns on
success and raises SmsDeliveryError otherwise. TwilioSmsSender talks to
Twilio's REST API over httpx; LoggingSmsSender is used when Twilio is not
configured (local development).
"""
import logging
from typing import Optional, Protocol

import httpx

from backend.app.core.config import Settings
from backend.app.security.otp_codes import mask_phone

logger = logging.getLogger(__name__)


class SmsDeliveryError(Exception):
    """The provider refused the message or could not be reached."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        self.code = code
        super().__init__(message)


class SmsSender(Protocol):
    async def send(self, to: str, body: str) -> None:
        ...


class TwilioSmsSender:
    """
    Twilio Messages API sender.

    POST {base}/Accounts/{sid}/Messages.json with basic auth; Twilio answers
    201 with the created message, anything else carries {code, message}.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messages_url = f"{base_url.rstrip('/')}/Accounts/{account_sid}/Messages.json"
        self.timeout = timeout
        self._client = client

    async def send(self, to: str, body: str) -> None:
        payload = {"To": to, "From": self.from_number, "Body": body}
        try:
            if self._client is not None:
                response = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, payload)
        except httpx.HTTPError as e:
            logger.warning("Twilio unreachable for %s: %s", mask_phone(to), e)
            raise SmsDeliveryError(str(e) or e.__class__.__name__) from e

        if response.status_code == 201:
            sid = response.json().get("sid")
            logger.info("SMS queued for %s (sid=%s)", mask_phone(to), sid)
            return

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        message = error_data.get("message") or f"Twilio responded with HTTP {response.status_code}"
        code = error_data.get("code")
        logger.warning("Twilio rejected SMS for %s: [%s] %s", mask_phone(to), code, message)
        raise SmsDeliveryError(message, code=str(code) if code is not None else None)

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> httpx.Response:
        return await client.post(
            self.messages_url,
            data=payload,
            auth=(self.account_sid, self.auth_token),
        )


class LoggingSmsSender:
    """Development sender: logs the destination instead of texting it."""

    async def send(self, to: str, body: str) -> None:
        logger.warning("Twilio not configured; SMS to %s not sent", mask_phone(to))
        logger.debug("Undelivered SMS body for %s: %s", mask_phone(to), body)


def build_sms_sender(settings: Settings) -> SmsSender:
    if settings.twilio_configured:
        return TwilioSmsSender(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            from_number=settings.TWILIO_PHONE_NUMBER,
            base_url=settings.TWILIO_API_BASE_URL,
            timeout=settings.SMS_TIMEOUT_SECONDS,
        )
    if settings.is_production:
        logger.error("Twilio credentials missing in production; OTP codes will not be delivered")
    return LoggingSmsSender()
