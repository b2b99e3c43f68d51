from typing import Optional

import httpx

from relay.logging_config import get_logger
from relay.services.result import ErrorCode, Result
from relay.services.upstream.base import ChatClient, TokenClient

logger = get_logger("upstream.http")

INVALID_CONVERSATION_ERROR = "INVALID_CONVERSATION_ID"


def _is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


def _json_or_none(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return None


class HttpTokenClient(TokenClient):
    """Access token authority reached over HTTP."""

    def __init__(self, url: str, timeout_seconds: float = 30.0):
        self.url = url
        self.timeout_seconds = timeout_seconds

    def fetch_token(self, identity: str) -> Result[str]:
        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(self.url, json={"phoneNumber": identity})
        except httpx.HTTPError as e:
            logger.error(f"Error fetching access token: {e}")
            return Result.failure(f"Access token API unreachable: {e}", ErrorCode.AUTH_PROVIDER_ERROR)

        if not _is_success(response):
            logger.error(f"Access token API error: {response.status_code} - {response.text[:200]}")
            return Result.failure(
                f"Access token API error: {response.status_code}", ErrorCode.AUTH_PROVIDER_ERROR
            )

        data = _json_or_none(response)
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token or not isinstance(token, str):
            logger.error("Invalid response from Access Token API")
            return Result.failure("Invalid response from Access Token API", ErrorCode.AUTH_PROVIDER_ERROR)

        return Result.success(token)


class HttpChatClient(ChatClient):
    """AI chat backend reached over HTTP with a bearer token."""

    def __init__(self, url: str, timeout_seconds: float = 30.0):
        self.url = url
        self.timeout_seconds = timeout_seconds

    def ask(self, token: str, conversation_id: Optional[str], text: str) -> Result[dict]:
        payload = {
            "conversation_id": conversation_id,
            "question": text,
            "enable_cache": True,
        }
        logger.debug(f"AI chat request: conversation_id={conversation_id}, question_len={len(text)}")

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    self.url,
                    headers={"Authorization": f"Bearer {token or ''}"},
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(f"AI chat API unreachable: {e}")
            return Result.failure(f"AI chat API unreachable: {e}", ErrorCode.UNAVAILABLE)

        logger.debug(f"AI chat response status: {response.status_code}")
        data = _json_or_none(response)

        if response.status_code == 401:
            return Result.failure("AI chat API rejected the access token", ErrorCode.UNAUTHENTICATED)

        if not _is_success(response):
            if isinstance(data, dict) and data.get("error") == INVALID_CONVERSATION_ERROR:
                return Result.failure("AI chat API rejected the conversation id", ErrorCode.INVALID_CONVERSATION)
            logger.error(f"AI chat API error: {response.status_code} - {response.text[:200]}")
            return Result.failure(f"AI chat API error: {response.status_code}", ErrorCode.UNAVAILABLE)

        if not isinstance(data, dict):
            logger.error(f"AI chat API returned malformed body: {response.text[:200]}")
            return Result.failure("AI chat API returned malformed body", ErrorCode.UNAVAILABLE)

        return Result.success(data)
