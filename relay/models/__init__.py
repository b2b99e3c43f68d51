from relay.models.chat_session import ChatSession

__all__ = ["ChatSession"]
