"""
Tests for logging setup.

Verifies:
- Log file location and handler lifecycle
- Verbose flag and third-party logger levels
- Console duplicate suppression
- Short logger names
"""
import io
import logging

import pytest

from core.logging import logger as log_module
from core.logging.logger import (
    SuppressingStreamHandler,
    _teardown_handlers,
    get_log_dir,
    get_logger,
    is_verbose_logging,
    setup_logging,
)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    saved_dir = log_module._LOG_DIR
    saved_verbose = log_module._VERBOSE
    yield
    _teardown_handlers()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)
    log_module._LOG_DIR = saved_dir
    log_module._VERBOSE = saved_verbose


class TestSetupLogging:
    def test_log_file_in_requested_dir(self, tmp_path, restore_logging):
        log_file = setup_logging(log_dir=tmp_path / "logs")
        logging.getLogger("test").info("hello file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_file == tmp_path / "logs" / "news_consolidator.log"
        assert get_log_dir() == tmp_path / "logs"
        assert "hello file" in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path, restore_logging):
        setup_logging(debug=True, log_dir=tmp_path)
        count = len(logging.getLogger().handlers)
        setup_logging(debug=True, log_dir=tmp_path)
        assert len(logging.getLogger().handlers) == count

    def test_info_level_without_debug(self, tmp_path, restore_logging):
        setup_logging(log_dir=tmp_path)
        assert logging.getLogger().level == logging.INFO
        assert not is_verbose_logging()
        assert logging.getLogger("urllib3").level == logging.INFO

    def test_verbose_implies_debug(self, tmp_path, restore_logging):
        setup_logging(verbose=True, log_dir=tmp_path)
        assert logging.getLogger().level == logging.DEBUG
        assert is_verbose_logging()
        assert logging.getLogger("requests").level == logging.DEBUG
        assert any(isinstance(h, SuppressingStreamHandler) for h in logging.getLogger().handlers)


class TestSuppressingStreamHandler:
    def _make(self):
        stream = io.StringIO()
        handler = SuppressingStreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(name)s %(levelname)s %(message)s"))
        return handler, stream

    def _record(self, name, level, msg):
        return logging.LogRecord(name, level, __file__, 1, msg, None, None)

    def test_consecutive_duplicates_collapsed(self):
        handler, stream = self._make()
        for i in range(4):
            handler.emit(self._record("rss.parser", logging.DEBUG, f"line {i}"))
        handler.emit(self._record("images", logging.DEBUG, "other"))

        lines = stream.getvalue().splitlines()
        assert lines[0].endswith("line 0")
        assert "[3 Suppressed: CHECK LOG]" in lines[1]
        assert lines[2].endswith("other")

    def test_warnings_never_suppressed(self):
        handler, stream = self._make()
        handler.emit(self._record("rss.fetcher", logging.WARNING, "first"))
        handler.emit(self._record("rss.fetcher", logging.WARNING, "second"))
        assert "first" in stream.getvalue()
        assert "second" in stream.getvalue()

    def test_close_flushes_summary(self):
        handler, stream = self._make()
        handler.emit(self._record("a", logging.INFO, "x"))
        handler.emit(self._record("a", logging.INFO, "y"))
        handler.close()
        assert "[1 Suppressed: CHECK LOG]" in stream.getvalue()


class TestGetLogger:
    def test_short_name_override(self):
        assert get_logger("sources.rss.parser").name == "rss.parser"
        assert get_logger("images.service").name == "images"

    def test_unknown_name_unchanged(self):
        assert get_logger("some.module").name == "some.module"
