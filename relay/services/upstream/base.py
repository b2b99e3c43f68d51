from abc import ABC, abstractmethod
from typing import Optional

from relay.services.result import Result


class TokenClient(ABC):
    """Obtains bearer tokens from the access token authority."""

    @abstractmethod
    def fetch_token(self, identity: str) -> Result[str]:
        """Fetch a fresh access token for the given identity."""
        pass


class ChatClient(ABC):
    """Sends questions to the AI chat backend."""

    @abstractmethod
    def ask(self, token: str, conversation_id: Optional[str], text: str) -> Result[dict]:
        """Ask a question within a conversation. None starts a new conversation."""
        pass
