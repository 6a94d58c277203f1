"""Logging configuration and utilities."""

import os
import sys
import logging
from datetime import datetime
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(log_dir: Optional[str] = None, verbose: bool = False) -> logging.Logger:
    """Configure logging to both file and console.

    The file gets every INFO message. The console only shows warnings
    unless verbose, so the progress bar and the summary stay readable.

    Args:
        log_dir: Directory for the log file (default: ./logs)
        verbose: Show INFO messages on the console too

    Returns:
        Configured logger instance
    """
    logs_dir = log_dir or os.path.join(os.getcwd(), 'logs')
    os.makedirs(logs_dir, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_file = os.path.join(logs_dir, f'upgit_{timestamp}.log')

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)

    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[file_handler, console_handler],
        force=True  # Reset any existing configuration
    )

    logger = logging.getLogger('upgit')
    logger.info("Starting upgit")
    logger.info(f"Log file: {log_file}")

    return logger
