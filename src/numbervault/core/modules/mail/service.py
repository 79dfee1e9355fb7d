"""Outbound email delivery via the Resend HTTP API."""

from typing import Any

import httpx
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from numbervault.core.core import Service
from numbervault.errors import DeliveryError

logger = structlog.get_logger(__name__)

SUBJECTS = {
    "register": "Your registration code",
    "login": "Your login code",
}


class MailService(Service):
    """Delivers verification codes to users.

    Without a configured API key, codes are written to the log instead (development).
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._client: httpx.AsyncClient | None = None

    async def on_start(self) -> None:
        config = self.core.config
        if config.resend_api_key and self._client is None:
            self._client = httpx.AsyncClient(
                base_url=config.resend_api_url,
                headers={"Authorization": f"Bearer {config.resend_api_key}"},
                timeout=config.mail_timeout,
            )
        if not config.resend_api_key:
            logger.warning("mail_delivery_disabled", reason="no resend_api_key configured")

    async def on_stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send_verification_code(self, email: str, code: str, purpose: str) -> None:
        """Send a verification code.

        Raises:
            DeliveryError: If the mail provider rejects the message or cannot be reached
        """
        config = self.core.config
        if self._client is None:
            logger.info("verification_code_not_mailed", email=email, purpose=purpose, code=code)
            return

        payload = {
            "from": config.mail_from,
            "to": [email],
            "subject": SUBJECTS.get(purpose, "Your verification code"),
            "text": f"Your verification code is {code}. It expires in {config.code_ttl_minutes} minutes.",
        }
        try:
            resp = await self._client.post("/emails", json=payload)
        except httpx.HTTPError as e:
            logger.exception("mail_send_error", email=email, purpose=purpose, error=str(e))
            raise DeliveryError("Verification code could not be sent. Request a new code.") from e

        if not resp.is_success:
            logger.error("mail_send_failed", email=email, purpose=purpose, status=resp.status_code, body=resp.text[:200])
            raise DeliveryError("Verification code could not be sent. Request a new code.")

        logger.debug("mail_sent", email=email, purpose=purpose)
