from relay.config import Settings
from relay.services.upstream.base import ChatClient, TokenClient
from relay.services.upstream.fixture_clients import FixtureChatClient, FixtureTokenClient
from relay.services.upstream.http_clients import HttpChatClient, HttpTokenClient

RELAY_MODE_LIVE = "live"
RELAY_MODE_MOCK = "mock"


def build_upstream_clients(settings: Settings) -> tuple[TokenClient, ChatClient]:
    """Create token and chat clients for the configured relay mode."""
    mode = (settings.relay_mode or RELAY_MODE_LIVE).strip().lower()
    if mode == RELAY_MODE_MOCK:
        return FixtureTokenClient(), FixtureChatClient()
    if mode != RELAY_MODE_LIVE:
        raise ValueError(f"Unknown relay mode: {settings.relay_mode}")
    return (
        HttpTokenClient(settings.access_token_api_url, timeout_seconds=settings.http_timeout_seconds),
        HttpChatClient(settings.ai_chat_api_url, timeout_seconds=settings.http_timeout_seconds),
    )


__all__ = [
    "ChatClient",
    "FixtureChatClient",
    "FixtureTokenClient",
    "HttpChatClient",
    "HttpTokenClient",
    "TokenClient",
    "build_upstream_clients",
]
