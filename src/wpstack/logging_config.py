"""
Logging configuration for wpstack

Provides console logging on stderr and optional rotating file logs, plus
masking of credentials that appear in WP-CLI and compose commands.
"""

import logging
import logging.handlers
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union


def setup_logging(
    log_dir: Optional[Union[str, Path]] = None,
    verbose: bool = False,
    log_level: Optional[str] = None,
) -> logging.Logger:
    """
    Set up logging for wpstack operations.

    Args:
        log_dir: Directory for log files; file logging is disabled when None
        verbose: Enable verbose console output
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    if log_level:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    if verbose:
        level = min(level, logging.DEBUG)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if log_dir else level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stdout belongs to the commands run inside the containers
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logger = logging.getLogger("wpstack")

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"wpstack_{timestamp}.log"

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(f"Log file: {log_file.absolute()}")

    logger.debug(f"Logging initialized - Level: {logging.getLevelName(level)}")
    return logger


def mask_sensitive_data(message: str) -> str:
    """
    Mask credentials in a log message or command line.

    Args:
        message: Text that may contain passwords

    Returns:
        Text with password values replaced by ``***``
    """
    # WP-CLI flags such as --admin_password=secret or --dbpass=secret
    message = re.sub(
        r"(--[\w-]*(?:password|pass))=\S+", r"\1=***", message, flags=re.IGNORECASE
    )

    # Environment assignments such as WORDPRESS_DB_PASSWORD=secret
    message = re.sub(r"(\b[A-Z_]*PASSWORD)=\S+", r"\1=***", message)

    return message


def configure_third_party_loggers() -> None:
    """Reduce noise from asyncio's own debug logging."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)


configure_third_party_loggers()
