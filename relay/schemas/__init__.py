from relay.schemas.twilio import TwilioInboundPayload

__all__ = ["TwilioInboundPayload"]
