import os
import tempfile
from datetime import datetime, timezone
from typing import Optional

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RELAY_MODE", "mock")
os.environ.setdefault("REPORTS_DIR", tempfile.mkdtemp(prefix="relay-reports-"))

from relay.services.result import ErrorCode, Result  # noqa: E402
from relay.services.session_store import SessionRecord, SessionStore  # noqa: E402
from relay.services.upstream.base import ChatClient, TokenClient  # noqa: E402

FIXED_NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class InMemorySessionStore(SessionStore):
    def __init__(self, *records: SessionRecord):
        self.records = {r.identity: r for r in records}
        self.upserts: list[SessionRecord] = []

    def find_by_identity(self, identity: str) -> Optional[SessionRecord]:
        return self.records.get(identity)

    def upsert(self, record: SessionRecord) -> None:
        self.records[record.identity] = record
        self.upserts.append(record)


class StubTokenClient(TokenClient):
    """Returns queued results; a plain string means success with that token."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls: list[str] = []

    def fetch_token(self, identity: str) -> Result[str]:
        self.calls.append(identity)
        result = self.results.pop(0)
        if isinstance(result, str):
            return Result.success(result)
        return result


class StubChatClient(ChatClient):
    """Returns queued results; a dict means success with that payload."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls: list[tuple] = []

    def ask(self, token: str, conversation_id: Optional[str], text: str) -> Result[dict]:
        self.calls.append((token, conversation_id, text))
        result = self.results.pop(0)
        if isinstance(result, dict):
            return Result.success(result)
        return result


def auth_failure() -> Result:
    return Result.failure("token authority down", ErrorCode.AUTH_PROVIDER_ERROR)


def chat_failure(code: ErrorCode) -> Result:
    return Result.failure(f"chat failed: {code.value}", code)
