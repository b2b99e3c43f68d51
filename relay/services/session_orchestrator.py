"""Session lifecycle and AI-call retry policy.

One call to :meth:`SessionOrchestrator.handle` per inbound message. It resolves
a usable token for the identity, asks the chat backend and recovers at most
once per failure class:

* ``UNAUTHENTICATED``: refresh the token, retry once with the same
  conversation id. Any failure after that is ``AI_SERVICE_UNAVAILABLE``.
* ``INVALID_CONVERSATION``: retry once with no conversation id and the
  current token. The retry result is returned as-is.
* ``UNAVAILABLE``: returned immediately.

Worst case is two token-authority calls and two chat calls per message.
Concurrent messages for one identity are not serialised; the last upsert wins.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from relay.logging_config import LoggerAdapter, get_logger, mask_identity
from relay.services.result import ErrorCode, Result
from relay.services.session_store import SessionRecord, SessionStore
from relay.services.token_expiry import DEFAULT_REFRESH_WINDOW_SECONDS, is_token_expired
from relay.services.upstream.base import ChatClient, TokenClient

logger = get_logger("session_orchestrator")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionOrchestrator:
    def __init__(
        self,
        store: SessionStore,
        token_client: TokenClient,
        chat_client: ChatClient,
        refresh_window_seconds: int = DEFAULT_REFRESH_WINDOW_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.token_client = token_client
        self.chat_client = chat_client
        self.refresh_window_seconds = refresh_window_seconds
        self.clock = clock

    def handle(self, identity: str, text: str) -> Result[dict]:
        """Answer one inbound message for the identity."""
        log = LoggerAdapter(logger, {"identity": mask_identity(identity)})

        record = self.store.find_by_identity(identity)
        if record is None:
            log.info("New session")
            created = self._create_session(identity)
            if not created.ok:
                return created
            record = created.value
        else:
            log.info("Existing session")
            record = self._refresh_if_expiring(record, log)

        result = self.chat_client.ask(record.access_token, record.conversation_id, text)
        if result.ok:
            self._remember_conversation(record, result.value)
            return result

        if result.error_code is ErrorCode.UNAUTHENTICATED:
            return self._retry_after_reauth(record, text, log)

        if result.error_code is ErrorCode.INVALID_CONVERSATION:
            return self._retry_with_new_conversation(record, text, log)

        log.error("AI chat failed", context={"error": result.error, "code": result.error_code})
        return result

    def _create_session(self, identity: str) -> Result[SessionRecord]:
        token = self.token_client.fetch_token(identity)
        if not token.ok:
            logger.error(f"Token fetch failed for new session {mask_identity(identity)}: {token.error}")
            return Result.failure(token.error, ErrorCode.AUTH_PROVIDER_ERROR)

        record = SessionRecord(
            identity=identity,
            access_token=token.value,
            conversation_id=None,
            token_last_refreshed_at=self.clock(),
        )
        self.store.upsert(record)
        return Result.success(record)

    def _refresh_token(self, record: SessionRecord) -> Result[SessionRecord]:
        token = self.token_client.fetch_token(record.identity)
        if not token.ok:
            return Result.failure(token.error, ErrorCode.AUTH_PROVIDER_ERROR)

        refreshed = replace(record, access_token=token.value, token_last_refreshed_at=self.clock())
        self.store.upsert(refreshed)
        return Result.success(refreshed)

    def _refresh_if_expiring(self, record: SessionRecord, log: LoggerAdapter) -> SessionRecord:
        now = self.clock().timestamp()
        if not is_token_expired(record.access_token, now=now, window_seconds=self.refresh_window_seconds):
            return record

        log.info("Token expired (time check), refreshing proactively")
        refreshed = self._refresh_token(record)
        if not refreshed.ok:
            # Proceed with the stored token; a 401 will trigger the reactive refresh.
            log.error("Proactive token refresh failed", context={"error": refreshed.error})
            return record
        return refreshed.value

    def _remember_conversation(self, record: SessionRecord, payload: dict) -> SessionRecord:
        conversation_id = payload.get("conversation_id")
        if not conversation_id or conversation_id == record.conversation_id:
            return record

        updated = replace(record, conversation_id=conversation_id)
        self.store.upsert(updated)
        return updated

    def _retry_after_reauth(self, record: SessionRecord, text: str, log: LoggerAdapter) -> Result[dict]:
        log.info("Auth failed (401), refreshing token")
        refreshed = self._refresh_token(record)
        if not refreshed.ok:
            log.error("Token refresh after 401 failed", context={"error": refreshed.error})
            return Result.failure("AI service unavailable", ErrorCode.AI_SERVICE_UNAVAILABLE)

        record = refreshed.value
        log.info("Retrying AI call with new token")
        retry = self.chat_client.ask(record.access_token, record.conversation_id, text)
        if not retry.ok:
            log.error("Retry after token refresh failed", context={"error": retry.error, "code": retry.error_code})
            return Result.failure("AI service unavailable", ErrorCode.AI_SERVICE_UNAVAILABLE)

        self._remember_conversation(record, retry.value)
        return retry

    def _retry_with_new_conversation(self, record: SessionRecord, text: str, log: LoggerAdapter) -> Result[dict]:
        log.info("Conversation id rejected, requesting a new one", context={"conversation_id": record.conversation_id})
        retry = self.chat_client.ask(record.access_token, None, text)
        if not retry.ok:
            log.error("Retry with new conversation failed", context={"error": retry.error, "code": retry.error_code})
            return retry

        self._remember_conversation(record, retry.value)
        return retry
