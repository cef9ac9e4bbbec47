"""
Logging configuration for ncm-tagfix.

This module sets up the logging system with multiple outputs:
    - Console: Real-time progress with tqdm-compatible, colored formatting
    - log_full_<ts>.log: Complete log of all events (DEBUG and above)
    - log_errors_<ts>.log: Only ERROR and CRITICAL level messages
    - repair_failures_<ts>.log: Files that could not be repaired, with the reason

File outputs are only created when a log directory is configured. Without
one, everything goes to the console.

Usage:
    from ncm_tagfix.core.logger import setup_logging, get_logger

    setup_logging(log_dir)         # Call once at startup (log_dir may be None)
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Adding title")
    log_file_failure(logger, path, "Failed to save tags")
"""

import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


LOG_FULL_PREFIX = "log_full"
LOG_ERRORS_PREFIX = "log_errors"
REPAIR_FAILURES_PREFIX = "repair_failures"

# Log format for file output (detailed with timestamp and worker thread)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as '<colored level>: <message>'."""
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        message = f"{colored_levelname}: {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking progress bars.

    Uses tqdm.write(), which coordinates with any active bar so that log
    lines appear above it instead of tearing it.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        """
        Initialize the tqdm-compatible handler.

        Args:
            stream: Output stream for log messages. Defaults to stderr.
        """
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class FailedFileHandler(logging.Handler):
    """
    Custom handler that captures per-file failures for the report file.

    Listens for log records carrying a 'failed_file_path' extra field and
    writes them to repair_failures_<ts>.log in a human-readable format:

        /music/album/01 Song.flac
        Failed to save tags: [Errno 13] Permission denied

        /music/album/02 Other.mp3
        Artist entry 0 is not a [name, id] pair

    Records without the field are ignored.

    Attributes:
        report_path: Path to the report file.
        report_file: Open file handle (None until open() is called).
    """

    def __init__(self, report_path: Path) -> None:
        """
        Initialize the failed file handler.

        Args:
            report_path: Path to the report file. Created/overwritten on open().
        """
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None
        self._write_lock = threading.Lock()

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        """
        Write failed file info to the report if present in the log record.

        Thread Safety:
            Workers log concurrently, so writes are serialized with a lock.
        """
        if not hasattr(record, "failed_file_path"):
            return

        if self.report_file is None:
            return

        try:
            path = getattr(record, "failed_file_path", "")
            reason = getattr(record, "failed_file_reason", "")
            with self._write_lock:
                self.report_file.write(f"{path}\n")
                self.report_file.write(f"{reason}\n\n")
                self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """
        Close the report file handle.

        Safe to call multiple times.
        """
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path | None = None, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any worker threads start.

    Args:
        log_dir: Directory where log files will be created, or None for
                 console-only logging. Created if it doesn't exist.
        verbose: Show DEBUG messages on the console.

    Behavior:
        1. Configure root logger level to DEBUG and drop existing handlers
        2. Console handler (TqdmLoggingHandler), INFO or DEBUG, colored
        3. If log_dir is given:
           - log_full_<ts>.log at DEBUG
           - log_errors_<ts>.log filtered by ErrorOnlyFilter
           - repair_failures_<ts>.log via FailedFileHandler
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    full_handler = logging.FileHandler(
        log_dir / f"{LOG_FULL_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        log_dir / f"{LOG_ERRORS_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failures_handler = FailedFileHandler(log_dir / f"{REPAIR_FAILURES_PREFIX}_{timestamp}.log")
    failures_handler.open()
    root_logger.addHandler(failures_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().
    """
    return logging.getLogger(name)


def format_summary_line(label: str, value: object) -> str:
    """Format one aligned row of the end-of-run summary."""
    return f"{label + ':':<20}{value}"


def log_file_failure(
    logger: logging.Logger,
    file_path: Path | str,
    error_message: str,
    exc_info: bool = False
) -> None:
    """
    Log a file whose repair failed.

    Logs an ERROR level message and attaches the extra fields that
    FailedFileHandler uses to write the failure report.

    Args:
        logger: The logger to use for the message.
        file_path: The audio file that failed.
        error_message: Description of why the repair failed.
        exc_info: Attach the current exception traceback.

    Example:
        log_file_failure(logger, path, "Failed to save tags: disk full")
    """
    logger.error(
        f"{file_path}: {error_message}",
        exc_info=exc_info,
        extra={
            "failed_file_path": str(file_path),
            "failed_file_reason": error_message,
        }
    )


def shutdown_logging() -> None:
    """
    Properly shut down the logging system.

    Flushes and closes every root handler and removes it, so a later
    setup_logging() starts clean.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
