# tests/test_logger.py
"""Test logging setup and the failure report"""

import logging

from ncm_tagfix.core.logger import (
    ColoredConsoleFormatter,
    ErrorOnlyFilter,
    FailedFileHandler,
    format_summary_line,
    get_logger,
    log_file_failure,
    setup_logging,
    shutdown_logging,
)


def _record(level, msg="message", **extra):
    record = logging.LogRecord("test", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestHandlers:
    """Test custom handlers and filters"""

    def test_error_only_filter(self):
        """Test only ERROR and above pass"""
        error_filter = ErrorOnlyFilter()
        assert not error_filter.filter(_record(logging.WARNING))
        assert error_filter.filter(_record(logging.ERROR))
        assert error_filter.filter(_record(logging.CRITICAL))

    def test_colored_formatter(self):
        """Test the level name is colored and the message kept"""
        formatted = ColoredConsoleFormatter().format(_record(logging.WARNING, "careful"))
        assert "\033[33mWARNING\033[0m" in formatted
        assert formatted.endswith("careful")

    def test_failed_file_handler(self, temp_dir):
        """Test only records with a failed file path are written"""
        report = temp_dir / "failures.log"
        handler = FailedFileHandler(report)
        handler.open()
        handler.emit(_record(logging.ERROR, "ignored"))
        handler.emit(_record(
            logging.ERROR,
            failed_file_path="/music/a.flac",
            failed_file_reason="Failed to save FLAC tags"
        ))
        handler.close()
        handler.close()

        assert report.read_text(encoding="utf-8") == "/music/a.flac\nFailed to save FLAC tags\n\n"

    def test_summary_line(self):
        """Test summary rows are aligned"""
        assert format_summary_line("Failed", 2) == "Failed:" + " " * 13 + "2"


class TestSetupLogging:
    """Test setup_logging() with a log directory"""

    def test_log_files(self, temp_dir, restore_root_logging):
        """Test the three log files are created and filled"""
        setup_logging(temp_dir / "logs")
        logger = get_logger("ncm_tagfix.test")
        logger.info("Adding title")
        log_file_failure(logger, temp_dir / "x.flac", "Artist entry 0 is not a [name, id] pair")
        shutdown_logging()

        logs = temp_dir / "logs"
        full = next(logs.glob("log_full_*.log")).read_text(encoding="utf-8")
        errors = next(logs.glob("log_errors_*.log")).read_text(encoding="utf-8")
        failures = next(logs.glob("repair_failures_*.log")).read_text(encoding="utf-8")

        assert "Adding title" in full
        assert "Adding title" not in errors
        assert "x.flac" in errors
        assert failures == f"{temp_dir / 'x.flac'}\nArtist entry 0 is not a [name, id] pair\n\n"

    def test_console_only(self, temp_dir, restore_root_logging):
        """Test no files are written without a log directory"""
        setup_logging(None, verbose=True)
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.DEBUG
        shutdown_logging()
        assert list(temp_dir.iterdir()) == []
