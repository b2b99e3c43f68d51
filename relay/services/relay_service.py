from dataclasses import dataclass
from typing import Optional

from relay.config import Settings
from relay.logging_config import LoggerAdapter, get_logger, mask_identity
from relay.services.alert_service import alert_relay_failure
from relay.services.formatter import SECTION_SEPARATOR, extract_table, format_response, suggestions_section
from relay.services.report_service import generate_table_media, save_report
from relay.services.result import ErrorCode, Result
from relay.services.session_orchestrator import SessionOrchestrator
from relay.services.twilio_service import TwilioService, strip_whatsapp_prefix

logger = get_logger("relay_service")

UNAVAILABLE_REPLY = "We are currently unavailable. Please try again later."


@dataclass
class InboundMessage:
    sender: str  # "whatsapp:+1555..."
    recipient: str  # our Twilio number
    body: str
    message_sid: Optional[str] = None

    @property
    def identity(self) -> str:
        return strip_whatsapp_prefix(self.sender)


def _send_media_reply(
    twilio: TwilioService,
    message: InboundMessage,
    ai_data: dict,
    table: dict,
    settings: Settings,
) -> bool:
    """Send caption + rendered table, then suggestions separately.

    Returns False when the table could not be rendered so the caller falls back to text.
    """
    try:
        media = generate_table_media(table)
        filename = save_report(media, settings.reports_dir)
    except Exception as e:
        logger.error(f"Media generation failed, falling back to text: {e}", exc_info=True)
        return False

    media_url = f"{settings.base_url.rstrip('/')}/reports/{filename}"
    formatted = format_response(ai_data, omit_tables=True)

    caption = formatted.body
    if media.message:
        caption += f"\n\n{media.message}"
    caption += f"\n🔗 Link: {media_url}"

    twilio.send_message(message.recipient, message.sender, caption, media_url=media_url)

    if formatted.suggestions:
        twilio.send_message(message.recipient, message.sender, suggestions_section(formatted.suggestions))
    return True


def _send_text_reply(twilio: TwilioService, message: InboundMessage, ai_data: dict) -> bool:
    formatted = format_response(ai_data)
    body = formatted.body
    if formatted.suggestions:
        body += SECTION_SEPARATOR + suggestions_section(formatted.suggestions)
    return twilio.send_message(message.recipient, message.sender, body)


def _reply_unavailable(
    twilio: TwilioService,
    message: InboundMessage,
    log: LoggerAdapter,
    error: Optional[str],
    error_code: Optional[ErrorCode],
) -> bool:
    log.error("Error in processing flow", context={"error": error, "code": error_code})
    alert_relay_failure(message.identity, error_code, error, message_sid=message.message_sid)
    if not twilio.send_message(message.recipient, message.sender, UNAVAILABLE_REPLY):
        log.error("Failed to send error message")
    return False


def process_inbound_message(
    orchestrator: SessionOrchestrator,
    twilio: TwilioService,
    message: InboundMessage,
    settings: Settings,
) -> bool:
    """Answer one inbound WhatsApp message. Returns True when a normal reply was sent.

    Any failure, including one while formatting or sending the answer, ends in
    the unavailable reply so the user is never left without a response.
    """
    log = LoggerAdapter(logger, {"identity": mask_identity(message.identity), "message_sid": message.message_sid})
    log.info("Received message", context={"length": len(message.body)})

    try:
        result = orchestrator.handle(message.identity, message.body)
    except Exception as e:
        log.error(f"Unexpected relay error: {e}", exc_info=True)
        result = Result.failure(str(e), ErrorCode.UNAVAILABLE)

    if not result.ok:
        return _reply_unavailable(twilio, message, log, result.error, result.error_code)

    ai_data = result.value
    try:
        table = extract_table(ai_data)
        if table and _send_media_reply(twilio, message, ai_data, table, settings):
            return True
        return _send_text_reply(twilio, message, ai_data)
    except Exception as e:
        log.error(f"Failed to deliver answer: {e}", exc_info=True)
        return _reply_unavailable(twilio, message, log, str(e), ErrorCode.UNAVAILABLE)
