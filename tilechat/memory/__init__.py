"""
Memory package - the append-only chat message log.

Use `get_message_log()` to get the implementation matching configuration:
- SQLMessageLog when PERSISTENT_STORAGE=true
- InMemoryMessageLog otherwise
"""
from typing import Optional

from tilechat.core.config import get_settings
from tilechat.memory.message_log import InMemoryMessageLog, LogEntry, MessageLog
from tilechat.memory.persistent import SQLMessageLog

_message_log: Optional[MessageLog] = None


def get_message_log() -> MessageLog:
    """Get or create the process-wide message log."""
    global _message_log
    if _message_log is None:
        if get_settings().persistent_storage:
            _message_log = SQLMessageLog()
        else:
            _message_log = InMemoryMessageLog()
    return _message_log


def reset_message_log() -> None:
    """Forget the process-wide message log (for testing)."""
    global _message_log
    _message_log = None


__all__ = [
    "LogEntry",
    "MessageLog",
    "InMemoryMessageLog",
    "SQLMessageLog",
    "get_message_log",
    "reset_message_log",
]
