from typing import Optional

from pydantic import BaseModel, ConfigDict


class TwilioInboundPayload(BaseModel):
    """Subset of the Twilio WhatsApp webhook fields the relay needs."""

    From: Optional[str] = None  # "whatsapp:+15551234567"
    To: Optional[str] = None
    Body: Optional[str] = None
    MessageSid: Optional[str] = None

    model_config = ConfigDict(extra="ignore")
