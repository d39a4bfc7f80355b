"""
Logging configuration for rawadf.

Provides file logging with system information capture for troubleshooting,
plus small helpers that give log lines from every command the same shape.
"""

import logging
import sys
import platform
from pathlib import Path
from typing import List, Optional


LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Handlers added by setup_logging
_installed_handlers: List[logging.Handler] = []


def setup_logging(log_file: Optional[str] = None, level: int = logging.DEBUG,
                  console_level: Optional[int] = None) -> None:
    """
    Configure logging for the command line tool.

    When log_file is given, a file handler records everything at level and
    the system information is written on startup. A console handler on
    stderr is added only when console_level is given, so normal command
    output on stdout stays clean.

    Args:
        log_file: Path to log file, or None to skip file logging
        level: Logging level for the file handler (default: logging.DEBUG)
        console_level: Level for stderr output, or None for no console logging

    Example:
        >>> setup_logging("rawadf.log")
        >>> logging.info("Application started")
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Replace handlers from an earlier call
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        root.addHandler(file_handler)
        _installed_handlers.append(file_handler)

    if console_level is not None:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
        root.addHandler(console_handler)
        _installed_handlers.append(console_handler)

    if log_file:
        log_system_info()


def log_system_info() -> None:
    """Log platform and interpreter details."""
    from rawadf import __version__

    logging.info("=" * 60)
    logging.info("rawadf %s - System Information", __version__)
    logging.info("=" * 60)
    logging.info("Platform: %s %s", platform.system(), platform.release())
    logging.info("Machine: %s", platform.machine())
    logging.info("Python version: %s", sys.version)
    logging.info("Python executable: %s", sys.executable)
    logging.info("=" * 60)


def log_operation(operation: str, details: str, level: int = logging.INFO) -> None:
    """
    Log an image operation with details.

    Args:
        operation: Name of the operation (e.g., "merge", "split")
        details: Additional details about the operation
        level: Logging level (default: logging.INFO)

    Example:
        >>> log_operation("split", "kept 12 of 160 tracks")
    """
    logging.log(level, f"{operation}: {details}")


def log_error(operation: str, error_kind: str, error_message: str) -> None:
    """
    Log an error with operation context.

    Example:
        >>> log_error("merge", "truncated", "Premature end-of-file")
    """
    logging.error(f"{operation} failed - {error_kind}: {error_message}")


def log_performance(operation: str, duration: float, **metrics) -> None:
    """
    Log performance metrics for an operation.

    Example:
        >>> log_performance("merge", 0.25, tracks=160, bytes=2004000)
    """
    metrics_str = ", ".join(f"{k}={v}" for k, v in metrics.items())
    logging.info(f"Performance - {operation}: {duration:.2f}s, {metrics_str}")
