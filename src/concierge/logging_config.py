"""
Logging Configuration
Sets up file-based logging with separate log files for the app, the
routing agent, the backend clients and the banking collaborator.
"""

import os
import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler

# Log directory (override with LOG_DIR)
LOG_DIR = Path(os.getenv("LOG_DIR") or Path.cwd() / "logs")

# Log file names
APP_LOG_FILE = "app.log"
AGENT_LOG_FILE = "agent.log"
CLIENTS_LOG_FILE = "clients.log"
BANKING_LOG_FILE = "banking.log"

# Log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Max log file size (10MB)
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5


def setup_file_logger(name: str, log_file: Path, level: int = logging.INFO) -> logging.Logger:
    """
    Set up a file-based logger with rotation

    Args:
        name: Logger name
        log_file: Path to log file
        level: Logging level

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    # Only warnings and errors go to the console
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


def setup_logging(log_dir: Path = None) -> None:
    """
    Set up all concierge loggers
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, log_level, logging.INFO)

    target = Path(log_dir) if log_dir else LOG_DIR
    target.mkdir(parents=True, exist_ok=True)

    setup_file_logger("concierge.app", target / APP_LOG_FILE, level)
    setup_file_logger("agent", target / AGENT_LOG_FILE, level)
    setup_file_logger("concierge.clients", target / CLIENTS_LOG_FILE, level)
    setup_file_logger("concierge.banking", target / BANKING_LOG_FILE, level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    logging.info("Logging configured. Log files in: %s", target)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance (creates if doesn't exist)
    """
    return logging.getLogger(name)
