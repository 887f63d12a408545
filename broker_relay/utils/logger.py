"""
Logging utilities for the broker relay
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from broker_relay.core.enums import LOG_FORMAT, LOG_DATE_FORMAT


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    log_dir: str = "logs"
) -> None:
    """
    Setup logging configuration for the relay

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Whether to log to file
        log_dir: Directory for log files
    """

    # Create logs directory
    if log_to_file:
        Path(log_dir).mkdir(exist_ok=True)

    # Configure logging level
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Create formatters
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    # Setup root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers
    root_logger.handlers.clear()

    # Console handler; stdout carries the CLI result
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler
    log_filepath = None
    if log_to_file:
        log_filename = f"broker_relay_{datetime.now().strftime('%Y%m%d')}.log"
        log_filepath = Path(log_dir) / log_filename

        file_handler = logging.FileHandler(log_filepath)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Suppress noisy external loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized at {level}")
    if log_filepath:
        logger.debug(f"Log file: {log_filepath}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class OperationLogger:
    """
    Structured log lines for relay operations
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self.operation_count = 0

    def log_operation_start(self, operation: str, uid: str) -> None:
        self.operation_count += 1
        self.logger.info(f"▶ {operation} uid={uid}")

    def log_operation_result(
        self,
        operation: str,
        uid: str,
        duration: float,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        message = f"✅ {operation} uid={uid} in {duration:.2f}s"
        if details:
            message += " | " + ", ".join(f"{k}={v}" for k, v in details.items())
        self.logger.info(message)

    def log_operation_failure(
        self,
        operation: str,
        uid: Optional[str],
        kind: str,
        message: str
    ) -> None:
        self.logger.warning(f"❌ {operation} uid={uid} failed [{kind}]: {message}")

    def log_error_with_context(
        self,
        error: Exception,
        context: str,
        uid: Optional[str] = None
    ) -> None:
        """Log unexpected error with traceback"""

        message = f"❌ {context}"
        if uid:
            message += f" (uid={uid})"
        message += f": {str(error)}"

        self.logger.error(message, exc_info=True)


def log_startup_info(config) -> None:
    """Log startup information"""
    logger = get_logger("startup")

    settings = config.to_dict()
    logger.info("=" * 50)
    logger.info("🔌 Broker Relay Starting")
    logger.info("=" * 50)
    logger.info(f"Region: {config.region}")
    logger.info(f"Token: {settings['metaapi_token']}")
    logger.info(f"Max Retries (202): {config.max_retries}")
    logger.info(f"Deploy Polling: {config.deploy_poll_attempts} x {config.deploy_poll_interval}s")
    logger.info(f"Store: {config.store_path}")
    logger.info("=" * 50)
