import time
from typing import Optional

from jose import JWTError, jwt

from relay.logging_config import get_logger

logger = get_logger("token_expiry")

DEFAULT_REFRESH_WINDOW_SECONDS = 60


def is_token_expired(
    token: Optional[str],
    now: Optional[float] = None,
    window_seconds: int = DEFAULT_REFRESH_WINDOW_SECONDS,
) -> bool:
    """Check whether a token is expired or expires within the refresh window.

    No network call is made. Tokens without an ``exp`` claim, or tokens that
    cannot be decoded, count as valid until the chat backend rejects them.
    """
    if not token:
        return True

    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        logger.warning(f"Token decode failed, treating as valid until 401: {e}")
        return False

    exp = claims.get("exp") if isinstance(claims, dict) else None
    if exp is None:
        return False

    try:
        exp = float(exp)
    except (TypeError, ValueError):
        logger.warning(f"Token exp claim is not numeric, treating as valid until 401: {exp!r}")
        return False

    current = time.time() if now is None else now
    return exp < current + window_seconds
