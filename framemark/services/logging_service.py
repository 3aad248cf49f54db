"""
Logging for FrameMark sessions.

The ``framemark`` command calls setup_logging() once before opening the
editor (``-v`` lowers the level to DEBUG). Editor modules only ever ask for
a named logger; a session's tool switches, commits, undo and pin placement
are logged at DEBUG, while save, cancel and config fallbacks go out at
INFO or WARNING.

Records go to stderr and, unless disabled, to one file per day under
~/.local/share/framemark/logs/.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional


DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "framemark" / "logs"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_initialized = False


def _make_handler(handler: logging.Handler, log_level: int) -> logging.Handler:
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(
    log_level: int = logging.INFO,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Route FrameMark's log records to the console and the daily log file.

    Args:
        log_level: Level for the root logger and both handlers.
        log_to_file: Also write ``framemark_YYYYMMDD.log``.
        log_dir: Where the log file goes. Defaults to DEFAULT_LOG_DIR.

    A second call is a no-op until reset_logging() runs.
    """
    global _logging_initialized

    if _logging_initialized:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(_make_handler(logging.StreamHandler(), log_level))

    if log_to_file:
        log_dir = log_dir or DEFAULT_LOG_DIR
        log_path = log_dir / f"framemark_{datetime.now().strftime('%Y%m%d')}.log"
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            root_logger.addHandler(
                _make_handler(logging.FileHandler(log_path, encoding="utf-8"), log_level)
            )
        except OSError as e:
            # Annotating still works without a log file
            root_logger.warning(f"Could not open {log_path}: {e}. Logging to console only.")

    _logging_initialized = True


def reset_logging() -> None:
    """Close FrameMark's handlers so setup_logging() can run again."""
    global _logging_initialized

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _logging_initialized = False


def get_logger(name: str) -> logging.Logger:
    """
    Named logger for a FrameMark module.

    Usage:
        from framemark.services.logging_service import get_logger

        logger = get_logger(__name__)
        logger.debug(f"Pin {number} placed at ({x:.0f}, {y:.0f})")
    """
    return logging.getLogger(name)
