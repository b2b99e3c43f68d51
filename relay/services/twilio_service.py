from typing import Optional

import httpx

from relay.logging_config import get_logger

logger = get_logger("twilio_service")

WHATSAPP_PREFIX = "whatsapp:"


def strip_whatsapp_prefix(address: str) -> str:
    return address[len(WHATSAPP_PREFIX) :] if address.startswith(WHATSAPP_PREFIX) else address


class TwilioService:
    """Service for sending WhatsApp messages through the Twilio REST API."""

    BASE_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}"

    def __init__(self, account_sid: str, auth_token: str, timeout_seconds: float = 30.0):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.timeout_seconds = timeout_seconds
        self.base_url = self.BASE_URL.format(account_sid=account_sid)

    def send_message(
        self,
        from_: str,
        to: str,
        body: str,
        media_url: Optional[str] = None,
    ) -> bool:
        """Send message; returns False instead of raising on any failure."""
        if not self.account_sid or not self.auth_token:
            logger.error("Twilio credentials are missing (TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN)")
            return False

        data = {"From": from_, "To": to, "Body": body}
        if media_url:
            data["MediaUrl"] = media_url

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    f"{self.base_url}/Messages.json",
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                )
        except Exception as e:
            logger.error(f"Twilio API error: {e}")
            return False

        logger.info(f"Twilio response: status={response.status_code}, to={to}")
        if response.status_code not in (200, 201):
            logger.error(f"Twilio send failed: {response.status_code} - {response.text[:200]}")
            return False
        return True
