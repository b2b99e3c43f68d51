from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    AUTH_PROVIDER_ERROR = "auth_provider_error"
    UNAUTHENTICATED = "unauthenticated"
    INVALID_CONVERSATION = "invalid_conversation"
    UNAVAILABLE = "unavailable"
    AI_SERVICE_UNAVAILABLE = "ai_service_unavailable"


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: ErrorCode = ErrorCode.UNAVAILABLE) -> "Result[T]":
        return Result(ok=False, error=error, error_code=code)
