"""Tests for logging helpers."""

import logging
import logging.handlers
import sys

from stream_delivery.core.logging_config import (
    ColoredFormatter,
    get_error_tracker,
    get_performance_logger,
    setup_logging,
)


def test_error_tracker_counts():
    tracker = get_error_tracker("tests")

    tracker.log_error(ValueError("bad"), "parsing")
    tracker.log_error(ValueError("worse"))

    stats = tracker.get_error_stats()
    assert stats["component"] == "tests"
    assert stats["error_count"] == 2
    assert stats["last_error_time"] is not None


def test_performance_logger_timer():
    performance = get_performance_logger("tests")

    assert performance.end_timer("never started") == 0.0
    performance.start_timer("work")
    assert performance.end_timer("work") >= 0.0


def test_colored_formatter_leaves_record_untouched():
    record = logging.LogRecord("stream_delivery", logging.ERROR, __file__, 1, "failed", None, None)

    formatted = ColoredFormatter("%(levelname)s %(message)s").format(record)

    assert "failed" in formatted
    assert record.levelname == "ERROR"


def test_setup_logging_writes_rotating_file(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    log_file = tmp_path / "logs" / "stream_delivery.log"

    try:
        setup_logging("DEBUG", str(log_file))
        logging.getLogger("stream_delivery.streams").debug("range served")
        for handler in root.handlers:
            handler.flush()

        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
        assert "range served" in log_file.read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
