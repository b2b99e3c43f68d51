import json
from functools import lru_cache

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError

from relay.config import settings
from relay.database import SessionLocal
from relay.logging_config import get_logger, mask_identity
from relay.schemas.twilio import TwilioInboundPayload
from relay.services.relay_service import InboundMessage, process_inbound_message
from relay.services.session_orchestrator import SessionOrchestrator
from relay.services.session_store import SqlSessionStore
from relay.services.twilio_service import TwilioService
from relay.services.upstream import ChatClient, TokenClient, build_upstream_clients

logger = get_logger("whatsapp_webhook")

router = APIRouter()

EMPTY_TWIML = "<Response></Response>"


@lru_cache
def get_upstream_clients() -> tuple[TokenClient, ChatClient]:
    return build_upstream_clients(settings)


def get_twilio_service() -> TwilioService:
    return TwilioService(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        timeout_seconds=settings.http_timeout_seconds,
    )


async def parse_inbound_payload(request: Request) -> dict:
    """Twilio posts form-encoded data; JSON is accepted for manual testing."""
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        raw = await request.body()
        try:
            data = json.loads(raw.decode("utf-8", errors="replace"))
        except ValueError:
            logger.warning("Failed to decode JSON webhook payload")
            return {}
        return data if isinstance(data, dict) else {}

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def relay_message_task(message: InboundMessage) -> None:
    """Background task: run the full relay flow with its own DB session."""
    db = SessionLocal()
    try:
        token_client, chat_client = get_upstream_clients()
        orchestrator = SessionOrchestrator(
            SqlSessionStore(db),
            token_client,
            chat_client,
            refresh_window_seconds=settings.token_refresh_window_seconds,
        )
        process_inbound_message(orchestrator, get_twilio_service(), message, settings)
    except Exception as e:
        logger.error(f"Relay task failed: {e}", exc_info=True)
    finally:
        db.close()


@router.get("/", response_class=PlainTextResponse)
def index():
    return "WhatsApp Chatbot Backend is running."


@router.post("/whatsapp")
async def handle_incoming_message(request: Request, background_tasks: BackgroundTasks):
    """
    Twilio webhook for inbound WhatsApp messages.
    Acknowledges immediately; the AI round trip and reply happen in the background.
    """
    ack = Response(content=EMPTY_TWIML, media_type="application/xml")

    data = await parse_inbound_payload(request)
    try:
        payload = TwilioInboundPayload(**data)
    except ValidationError as e:
        logger.error(f"Invalid Twilio request: {e}")
        return ack

    if not payload.From or not payload.Body:
        logger.error("Invalid Twilio request: missing From or Body", extra={"context": {"fields": sorted(data)}})
        return ack

    message = InboundMessage(
        sender=payload.From,
        recipient=payload.To or "",
        body=payload.Body,
        message_sid=payload.MessageSid,
    )
    logger.info(
        f"Received message from {mask_identity(message.identity)}",
        extra={"context": {"message_sid": message.message_sid}},
    )
    background_tasks.add_task(relay_message_task, message)
    return ack
