"""Ops alerts for relay failures, delivered to a Telegram chat."""

from typing import Optional

import httpx

from relay.config import settings
from relay.logging_config import get_logger, mask_identity
from relay.services.result import ErrorCode

logger = get_logger("alert_service")

MAX_ALERT_ERROR_CHARS = 300


def send_alert(level: str, message: str, context: Optional[dict] = None) -> bool:
    """Send alert to the ops Telegram chat.

    Args:
        level: INFO, WARNING, ERROR, CRITICAL
        message: Alert message
        context: Optional context dict

    Returns:
        True if sent successfully
    """
    if not settings.alert_bot_token or not settings.alert_chat_id:
        logger.warning(f"Alert not configured: {level} - {message}")
        return False

    emoji = {"INFO": "ℹ️", "WARNING": "⚠️", "ERROR": "❌", "CRITICAL": "🔥"}

    text = f"{emoji.get(level, '📢')} *{level}*\n\n{message}"

    if context:
        context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
        text += f"\n\n```\n{context_str}\n```"

    try:
        with httpx.Client(timeout=10) as client:
            response = client.post(
                f"https://api.telegram.org/bot{settings.alert_bot_token}/sendMessage",
                json={"chat_id": settings.alert_chat_id, "text": text, "parse_mode": "Markdown"},
            )
            return response.status_code == 200
    except Exception as e:
        logger.error(f"Failed to send alert: {e}")
        return False


def alert_error(message: str, context: Optional[dict] = None) -> bool:
    """Shortcut for ERROR level alert."""
    return send_alert("ERROR", message, context)


def alert_relay_failure(
    identity: str,
    error_code: Optional[ErrorCode],
    error: Optional[str] = None,
    message_sid: Optional[str] = None,
) -> bool:
    """Alert that a WhatsApp user got the unavailable reply instead of an answer."""
    code = error_code.value if error_code else "UNKNOWN"
    detail = (error or "").strip()
    if len(detail) > MAX_ALERT_ERROR_CHARS:
        detail = detail[: MAX_ALERT_ERROR_CHARS - 3] + "..."

    context = {"identity": mask_identity(identity), "code": code}
    if message_sid:
        context["message_sid"] = message_sid
    if detail:
        context["error"] = detail
    return alert_error(f"AI relay failed ({code})", context)
