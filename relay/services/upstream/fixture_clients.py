import uuid
from typing import Optional

from relay.services.result import Result
from relay.services.upstream.base import ChatClient, TokenClient

FIXTURE_TOKEN = "mock_access_token"

FIXTURE_ANSWER = {
    "answer": {
        "summary": "Sales grew steadily over the last quarter, led by the North region.",
        "blocks": [
            {
                "type": "metrics",
                "metrics": [
                    {"label": "Revenue", "value": "$1.2M"},
                    {"label": "Orders", "value": "8,430"},
                    {"label": "Avg. order", "value": "$142"},
                ],
            },
            {
                "type": "table",
                "title": "Revenue by region",
                "headers": ["Region", "Revenue", "Growth"],
                "rows": [
                    ["North", "$420K", "+12%"],
                    ["South", "$310K", "+4%"],
                    ["East", "$280K", "+7%"],
                    ["West", "$190K", "-2%"],
                ],
            },
            {
                "type": "suggestions",
                "items": ["Show revenue by month", "Which products sell best?"],
            },
        ],
    },
}


class FixtureTokenClient(TokenClient):
    """Returns a fixed token without contacting the token authority."""

    def __init__(self, token: str = FIXTURE_TOKEN):
        self.token = token

    def fetch_token(self, identity: str) -> Result[str]:
        return Result.success(self.token)


class FixtureChatClient(ChatClient):
    """Returns a canned answer without contacting the AI backend."""

    def __init__(self, answer: Optional[dict] = None):
        self.answer = answer or FIXTURE_ANSWER

    def ask(self, token: str, conversation_id: Optional[str], text: str) -> Result[dict]:
        payload = dict(self.answer)
        payload["conversation_id"] = conversation_id or f"mock_conv_{uuid.uuid4().hex[:12]}"
        return Result.success(payload)
