"""
Logging configuration for the Live Update client

The library modules only create loggers. Applications, and the bundled CLI,
call setup_logging() once to decide where the records go.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone


def setup_logging(log_level=None, log_file=None, max_bytes=10*1024*1024, backup_count=5):
    """
    Set up logging for an application using the Live Update client.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, logs to stderr)
        max_bytes: Maximum size of log file before rotation (default 10MB)
        backup_count: Number of backup log files to keep (default 5)
    """

    if log_level is None:
        log_level = os.environ.get('LOG_LEVEL', 'WARNING')
    log_level = log_level.upper()

    if log_file is None:
        log_file = os.environ.get('LOG_FILE')

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.WARNING))
    root_logger.handlers.clear()

    if log_file:
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
    else:
        # stdout is reserved for command output
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized - Level: {log_level}, Output: {log_file or 'stderr'}")

    return logger


def get_logger(name):
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_liveupdate_event(event_type, mode=None, category=None, code=None,
                         success=True, error=None):
    """
    Log a Live Update operation outcome as key=value pairs.

    Phone numbers and credentials are never part of the record.

    Args:
        event_type: Type of event (e.g., 'operation_completed', 'operation_failed')
        mode: Live Update mode of the request (e.g., 'blacklist-add')
        category: Response category
        code: Response code
        success: Whether the operation was successful
        error: Error message if applicable
    """
    logger = logging.getLogger('liveupdate')

    log_data = {
        'event_type': event_type,
        'success': success,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }

    if mode:
        log_data['mode'] = mode
    if category:
        log_data['category'] = category
    if code is not None:
        log_data['code'] = code
    if error:
        log_data['error'] = error

    log_message = ' '.join([f"{k}={v}" for k, v in log_data.items()])

    if success:
        logger.info(f"LIVEUPDATE: {log_message}")
    else:
        logger.warning(f"LIVEUPDATE: {log_message}")
