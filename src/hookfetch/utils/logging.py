"""
Logging configuration for hookfetch.

Library modules only call get_logger(); handlers are installed by the
application through setup_logging() or setup_logging_from_config().
"""

import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


class FileFormatter(logging.Formatter):
    """Formatter for file logs - clean and parseable."""

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


class ConsoleFormatter(logging.Formatter):
    """Plain console format: "level: timestamp - msg", with file:line for errors."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.ERROR and record.pathname:
            filename = Path(record.pathname).name
            return f"{record.levelname}: {self.formatTime(record)} - {filename}:{record.lineno} - {record.getMessage()}"
        return f"{record.levelname}: {self.formatTime(record)} - {record.getMessage()}"


# Map string level names to logging constants
LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _parse_level(level: str | int) -> int:
    """
    Parse logging level from string or int.

    Args:
        level: Logging level as string (DEBUG, INFO, etc.) or int

    Returns:
        Logging level constant, INFO when the name is unknown
    """
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level_upper = level.upper()
        if level_upper in LEVEL_MAP:
            return LEVEL_MAP[level_upper]
    return logging.INFO


def setup_logging(
    level: str | int = logging.INFO,
    log_file: str | Path | None = None,
    format_string: str | None = None,
    file_mode: str = "a",
    console: Console | None = None,
    console_enabled: bool = True,
    use_rich: bool = True,
) -> logging.Logger:
    """
    Setup logging for the "hookfetch" logger hierarchy.

    Args:
        level: Logging level as string (DEBUG, INFO, etc.) or int (default: INFO)
        log_file: Optional file path to write logs to (default: None, console only)
        format_string: Optional custom format string for the plain console handler
        file_mode: File mode for file handler - 'a' for append, 'w' for overwrite
        console: Optional Rich Console instance for the rich handler
        console_enabled: Whether to enable console logging (default: True)
        use_rich: Use rich.logging.RichHandler for the console (default: True)

    Returns:
        The configured "hookfetch" logger
    """
    logger = logging.getLogger("hookfetch")

    # Only clear handlers from this logger, never from root or children
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level_int = _parse_level(level)
    logger.setLevel(level_int)

    if console_enabled:
        if use_rich:
            handler: logging.Handler = RichHandler(
                level=level_int,
                console=console,
                show_time=True,
                show_path=True,
                markup=False,
                rich_tracebacks=True,
                tracebacks_show_locals=False,
                log_time_format="[%X]",
                omit_repeated_times=False,
            )
        else:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(level_int)
            handler.setFormatter(logging.Formatter(format_string) if format_string else ConsoleFormatter())
        logger.addHandler(handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode=file_mode)
        # File captures everything the logger lets through
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(FileFormatter())
        logger.addHandler(file_handler)

    logger.propagate = True
    return logger


def setup_logging_from_config(config: dict[str, Any], project_dir: Path | None = None) -> logging.Logger:
    """
    Setup logging from a configuration mapping.

    Reads the "logging" section (level, file, file_mode, format,
    console_enabled, console_type). Relative log file paths are resolved
    against project_dir.

    Args:
        config: Configuration dictionary with an optional "logging" section
        project_dir: Optional directory for resolving relative log file paths

    Returns:
        The configured "hookfetch" logger
    """
    logging_config = config.get("logging") or {}

    log_file = logging_config.get("file")
    if log_file and project_dir:
        log_file = Path(log_file)
        if not log_file.is_absolute():
            log_file = project_dir / log_file

    console_enabled = logging_config.get("console_enabled", True)
    console_type = logging_config.get("console_type", "rich")

    return setup_logging(
        level=logging_config.get("level", logging.INFO),
        log_file=log_file,
        format_string=logging_config.get("format"),
        file_mode=logging_config.get("file_mode", "a"),
        console_enabled=console_enabled,
        use_rich=console_type == "rich",
    )


def get_logger(name: str = "hookfetch") -> logging.Logger:
    """
    Get a logger in the hookfetch hierarchy.

    Args:
        name: Logger name (default: "hookfetch")

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if not logging.getLogger("hookfetch").handlers:
        # Stay silent until the application configures logging
        logging.getLogger("hookfetch").addHandler(logging.NullHandler())
    return logger
