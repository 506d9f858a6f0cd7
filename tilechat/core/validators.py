"""
Input Validators - Sanitization and validation utilities.

Validation happens at the HTTP edge, before the quota gate or the
orchestrator ever see a request. Each validator returns a tuple rather
than raising so routes decide which error to surface.
"""
import uuid
from typing import Optional, Tuple

from tilechat.core.logging_config import get_logger

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 4000
MAX_USER_ID_LENGTH = 128


def sanitize_message(message: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """
    Sanitize a user message.

    - Removes null bytes
    - Strips leading/trailing whitespace
    - Limits length
    """
    if not message:
        return ""

    cleaned = message.replace("\x00", "").strip()

    if len(cleaned) > max_length:
        logger.debug(f"Message truncated from {len(cleaned)} to {max_length} chars")
        cleaned = cleaned[:max_length]

    return cleaned


def validate_message(message: Optional[str]) -> Tuple[bool, str, Optional[str]]:
    """
    Full validation and sanitization of a message.

    Returns:
        Tuple of (is_valid, sanitized_message, error_message)
    """
    if not message or not message.strip():
        return False, "", "Message cannot be empty"

    sanitized = sanitize_message(message)
    if not sanitized:
        return False, "", "Message cannot be empty after sanitization"

    return True, sanitized, None


def validate_user_id(user_id: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Check that a quota identity is present and reasonably sized."""
    if not user_id or not user_id.strip():
        return False, "userId is required"
    if len(user_id) > MAX_USER_ID_LENGTH:
        return False, f"userId too long (max {MAX_USER_ID_LENGTH} characters)"
    return True, None


def validate_session_id(session_id: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate a session ID is a proper UUID.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not session_id:
        return True, None  # Empty is OK (will be generated)

    try:
        uuid.UUID(session_id)
        return True, None
    except ValueError:
        return False, "Invalid sessionId format (must be UUID)"
