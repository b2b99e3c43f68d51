from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from relay.logging_config import get_logger, mask_identity
from relay.models import ChatSession

logger = get_logger("session_store")


@dataclass(frozen=True)
class SessionRecord:
    identity: str
    access_token: Optional[str] = None
    conversation_id: Optional[str] = None
    token_last_refreshed_at: Optional[datetime] = None


class SessionStore(ABC):
    """Per-identity session persistence, keyed by identity."""

    @abstractmethod
    def find_by_identity(self, identity: str) -> Optional[SessionRecord]:
        pass

    @abstractmethod
    def upsert(self, record: SessionRecord) -> None:
        """Insert or update the row for record.identity.

        Two first messages from one identity can both miss the row and insert.
        The loser hits the unique identity index, rolls back and updates the
        row the winner created, so the last writer wins.
        """
        try:
            self._write(record)
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Concurrent session insert for {mask_identity(record.identity)}, updating instead")
            self._write(record)

    def _write(self, record: SessionRecord) -> None:
        row = self.db.query(ChatSession).filter(ChatSession.identity == record.identity).first()
        if not row:
            row = ChatSession(identity=record.identity)
            self.db.add(row)
            logger.info(f"Creating session for {mask_identity(record.identity)}")

        row.access_token = record.access_token or None
        row.conversation_id = record.conversation_id
        row.token_last_refreshed_at = record.token_last_refreshed_at
        self.db.commit()
