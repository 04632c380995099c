"""
Centralized logging configuration for the MOCA portal.

Every log record carries the handling thread and the signed-in identity
(admin email, else patient email, else ``-``), so an order transition in
the log can be traced to the person who made it.

Features:
    - Thread name and session identity in all log messages
    - Console output (always enabled)
    - Rotating file logs (optional, for production)
    - Separate error log for ERROR/CRITICAL messages

Log Format:
    2026-10-16 10:15:30 [INFO    ] [MainThread] [-] moca_portal.app - Starting MOCA portal
    2026-10-16 10:15:32 [INFO    ] [Thread-3] [admin@moca.com] moca_portal.services.order_service - Order MOCA-1760... marked as processing

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    # In modules
    logger = get_logger(__name__)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from flask import has_request_context, session


APP_LOGGER_NAME = "moca_portal"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] [%(user)s] %(name)s - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


# =============================================================================
# REQUEST CONTEXT FILTER
# =============================================================================

class RequestContextFilter(logging.Filter):
    """
    Adds ``thread_name`` and ``user`` to each record.

    ``user`` comes from the signed session; ``-`` outside a request or
    before sign-in.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        record.user = "-"
        if has_request_context():
            record.user = session.get("adminEmail") or session.get("userEmail") or "-"
        return True


# =============================================================================
# LOGGING SETUP
# =============================================================================

def _rotating_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure the portal's logger tree.

    Console output always; with ``enable_file_logging`` also
    ``<app_name>.log`` and ``<app_name>_error.log`` (ERROR and above),
    both rotating at 10 MB.

    Args:
        app_name: Name of the root logger (default: "moca_portal")
        log_level: Minimum log level (default: INFO)
        log_dir: Directory for log files (default: ./logs relative to this file)
        enable_file_logging: Whether to write to log files

    Returns:
        Configured root logger instance
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False

    # Allows re-configuration (each create_app call in tests)
    logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]
    handlers[0].setLevel(log_level)

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_handler(log_dir / f"{app_name}.log", log_level))
        handlers.append(_rotating_handler(log_dir / f"{app_name}_error.log", logging.ERROR))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    context_filter = RequestContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        logger.addHandler(handler)

    if enable_file_logging:
        logger.info(f"File logging enabled in {log_dir}")
    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


# =============================================================================
# LOGGER FACTORY
# =============================================================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger under the application namespace.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance, e.g. "moca_portal.services.order_service"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"

    return logging.getLogger(name)
