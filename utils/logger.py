"""
Logging utilities for the Egg Gender Prediction pipeline.

This module provides a consistent logging interface across all modules.
Library modules log through ``logging.getLogger(__name__)``; only the
command line entry point installs handlers.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


# Default log format
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
SIMPLE_FORMAT = '%(levelname)s: %(message)s'


def setup_logger(
    name: str = 'egg_gender',
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    format_string: str = DEFAULT_FORMAT,
    console: bool = True
) -> logging.Logger:
    """
    Set up and return a configured logger.

    Args:
        name: Logger name ('' configures the root logger)
        level: Logging level (logging.DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        format_string: Log message format
        console: Whether to log to console

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(level)
    formatter = logging.Formatter(format_string)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = 'egg_gender') -> logging.Logger:
    """
    Get an existing logger or create a new one with default settings.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        return setup_logger(name)

    return logger


class SessionLogger:
    """
    Logger for tracking one analysis session.

    A session spans every batch submitted from start-up until the record
    store is cleared; this class logs batches, per-item failures and totals.
    """

    def __init__(
        self,
        session_name: str = 'session',
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize session logger.

        Args:
            session_name: Label used in log lines
            logger: Logger to write to (defaults to 'egg_gender.session')
        """
        self.session_name = session_name
        self.start_time = datetime.now()
        self.logger = logger or logging.getLogger('egg_gender.session')
        self.batches = 0

        self.logger.info(f"Session '{session_name}' started at {self.start_time}")

    def log_config(self, config: dict) -> None:
        """Log session configuration."""
        self.logger.info("Session Configuration:")
        for key, value in config.items():
            self.logger.info(f"  {key}: {value}")

    def log_batch_start(self, batch_number: str, analysis_type: str, size: int) -> None:
        """Log a batch being dispatched."""
        self.batches += 1
        self.logger.info(f"Batch '{batch_number}' ({analysis_type}): dispatching {size} item(s)")

    def log_item_failure(self, batch_number: str, item_id: str, error: BaseException) -> None:
        """Log one failed prediction without aborting the batch."""
        self.logger.error(
            f"Batch '{batch_number}' item '{item_id}' failed: {error}",
            exc_info=(type(error), error, error.__traceback__)
        )

    def log_batch_result(
        self,
        batch_number: str,
        succeeded: int,
        failed: int,
        cancelled: int,
        recorded: int
    ) -> None:
        """Log batch totals."""
        message = (
            f"Batch '{batch_number}' complete: {succeeded} succeeded, {failed} failed, "
            f"{recorded} recorded"
        )
        if cancelled:
            message += f", {cancelled} cancelled"
        self.logger.info(message)

    def log_warning(self, message: str) -> None:
        """Log a warning."""
        self.logger.warning(message)

    def log_finish(self) -> None:
        """Log session completion."""
        duration = datetime.now() - self.start_time
        self.logger.info(f"Session '{self.session_name}' completed after {self.batches} batch(es)")
        self.logger.info(f"Duration: {duration}")
