"""
Centralized logging configuration.

Every module logs through ``get_logger(__name__)``; ``setup_logging`` is
called once by the API entry point and attaches two handlers to the root
logger: stdout at the configured level, and a per-day file that keeps
everything down to DEBUG.
"""
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Provider SDKs and HTTP clients log every round trip at DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "groq", "urllib3")

_logging_configured = False


def log_file_path(log_dir: Path, day: Optional[datetime] = None) -> Path:
    """Daily log file inside ``log_dir``, e.g. ``tilechat_20250114.log``."""
    day = day or datetime.now()
    return log_dir / f"tilechat_{day.strftime('%Y%m%d')}.log"


def _build_handlers(log_level: str, log_file: Path) -> List[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)

    for handler in (console_handler, file_handler):
        handler.setFormatter(formatter)
    return [console_handler, file_handler]


def setup_logging(log_level: str = "INFO", log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Configure application-wide logging. Repeated calls are no-ops.

    Args:
        log_level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files. Defaults to 'logs/' in project root.

    Returns:
        The root logger

    Example:
        >>> from tilechat.core.logging_config import setup_logging
        >>> setup_logging("INFO", Path("/var/log/tilechat"))
    """
    global _logging_configured

    root_logger = logging.getLogger()
    if _logging_configured:
        return root_logger

    log_dir = Path(log_dir) if log_dir else Path(__file__).parent.parent.parent / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_file_path(log_dir)

    root_logger.setLevel(logging.DEBUG)
    for handler in _build_handlers(log_level, log_file):
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_configured = True
    root_logger.debug(f"Logging configured: level={log_level}, file={log_file}")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggerMixin:
    """
    Gives a class ``self.logger`` named after the concrete class.

    Example:
        >>> class RazorpayGateway(LoggerMixin):
        ...     def refund(self):
        ...         self.logger.info("Refunding order")
    """

    @property
    def logger(self) -> logging.Logger:
        return get_logger(self.__class__.__name__)
