# -*- coding: utf-8 -*-
"""
Centralized logging for the PointPillars TensorRT pipeline.
Console output is colored; file output rotates and keeps full DEBUG detail,
including the messages TensorRT emits through the backend logger.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Formatter with ANSI colors for console."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        # Work on a copy so file handlers keep the plain level name
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
            )
        return super().format(record)


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    console: bool = True,
    file_logging: bool = True,
    name: Optional[str] = None
) -> logging.Logger:
    """
    Configure the logging system for a run.

    Args:
        log_dir: Directory where log files are written (no file output if None)
        level: Console logging level
        console: If True, prints logs to stdout
        file_logging: If True, saves logs to a rotating file in log_dir
        name: Logger name (default: root logger)

    Returns:
        Configured logger

    Example:
        >>> from config.logging_config import setup_logging
        >>> logger = setup_logging(level=logging.DEBUG)
        >>> logger.info("Engine ready")
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if file_logging and log_dir else level)

    logger.handlers.clear()

    detailed_format = logging.Formatter(
        fmt='%(asctime)s | %(name)-28s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    simple_format = ColoredFormatter(
        fmt='%(levelname)-8s | %(message)s'
    )

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_format)
        logger.addHandler(console_handler)

    if file_logging and log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"pointpillars_{timestamp}.log"

        # 10 MB per file, 5 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_format)
        logger.addHandler(file_handler)

        latest_link = log_dir / "latest.log"
        if latest_link.is_symlink() or latest_link.exists():
            latest_link.unlink()
        try:
            latest_link.symlink_to(log_file.name)
        except OSError:
            # Windows may fail with symlinks
            pass

        logger.debug(f"Logging to file: {log_file}")

    # Only a named logger stops propagating; the root logger has no parent
    if name:
        logger.propagate = False

    return logger


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get logger configured for a specific module.

    Args:
        name: Module name (use __name__)
        level: Logging level used when the logger has no handlers of its own

    Example:
        >>> from config.logging_config import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Loading existing TRT engine")
    """
    logger = logging.getLogger(name)

    # Without handlers it inherits from the root logger
    if not logger.handlers:
        logger.setLevel(level)

    return logger


class LoggerContextManager:
    """Context manager for temporary logging with a different level."""

    def __init__(self, logger: logging.Logger, level: int):
        self.logger = logger
        self.new_level = level
        self.old_level = logger.level

    def __enter__(self):
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self.old_level)


def quiet_logger(logger: logging.Logger):
    """
    Context manager to temporarily silence a logger.

    Example:
        >>> with quiet_logger(logging.getLogger("tensorrt")):
        ...     manager.resolve()   # engine build prints a lot of tactics
    """
    return LoggerContextManager(logger, logging.WARNING)


def configure_external_loggers(level: int = logging.WARNING):
    """
    Silence noisy logs from external libraries.

    Args:
        level: Minimum level to display logs from external libraries
    """
    noisy_loggers = [
        'tensorrt',
        'torch',
        'PIL',
        'urllib3',
    ]

    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(level)
