import hashlib
import hmac
import time
from typing import Optional

from core.config import settings
from core.logger import logger


def _sign(data: str) -> str:
    return hmac.new(settings.SESSION_SECRET.encode(), data.encode(), hashlib.sha256).hexdigest()


def create_session_token(profile_id: int, issued_at: Optional[int] = None) -> str:
    """
    Create a signed session token for a profile.
    Format: {profile_id}:{timestamp}:{signature}
    """
    timestamp = int(issued_at if issued_at is not None else time.time())
    data = f"{profile_id}:{timestamp}"
    return f"{data}:{_sign(data)}"


def verify_session_token(token: str, now: Optional[float] = None) -> Optional[int]:
    """
    Verify a session token and return the profile ID, or None if the token
    is malformed, expired or carries a bad signature.
    """
    if not token:
        return None

    parts = token.split(':')
    if len(parts) != 3:
        return None

    profile_id_str, timestamp_str, signature = parts
    try:
        profile_id = int(profile_id_str)
        issued_at = int(timestamp_str)
    except ValueError:
        return None

    current = now if now is not None else time.time()
    if current - issued_at > settings.TOKEN_TTL_SECONDS:
        logger.warning("Session token expired", profile_id=profile_id)
        return None

    expected_signature = _sign(f"{profile_id_str}:{timestamp_str}")
    if not hmac.compare_digest(expected_signature, signature):
        logger.warning("Session token signature mismatch", profile_id=profile_id)
        return None

    return profile_id
