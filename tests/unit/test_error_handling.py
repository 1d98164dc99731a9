"""
Error Handling and Utilities Unit Tests
=======================================

Tests the exception hierarchy, logging helpers and the process lock.
"""

import fcntl
import json
import logging
import os

import pytest

from sanerss.utils.exceptions import (
    AIError,
    CacheCorruptionError,
    ErrorCode,
    FeedFetchError,
    PersistenceError,
    SaneRSSError,
    StorageError,
    get_user_friendly_message,
)
from sanerss.utils.logging import PerformanceLogger, StructuredFormatter, get_logger_for_component
from sanerss.utils.process_lock import ProcessLock, lock_for_known_items


class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(FeedFetchError, SaneRSSError)
        assert issubclass(PersistenceError, StorageError)
        assert issubclass(CacheCorruptionError, StorageError)

    def test_str_includes_code(self):
        error = FeedFetchError(
            "HTTP 503", feed_name="tech", feed_url="https://example.com", error_code=ErrorCode.FEED_HTTP_STATUS
        )
        assert str(error) == "[FEED_HTTP_STATUS] HTTP 503"
        assert error.context["feed_name"] == "tech"

    def test_to_dict(self):
        error = AIError("timeout", provider="groq", error_code=ErrorCode.AI_TIMEOUT)
        data = error.to_dict()

        assert data["error_type"] == "AIError"
        assert data["error_code"] == "AI_TIMEOUT"
        assert error.provider == "groq"

    def test_corruption_is_not_recoverable(self):
        error = CacheCorruptionError("bad", path="/tmp/known.json")
        assert error.recoverable is False
        assert error.context["path"] == "/tmp/known.json"

    def test_user_friendly_message(self):
        assert get_user_friendly_message(SaneRSSError("x", user_message="Nice")) == "Nice"
        assert "unexpected" in get_user_friendly_message(RuntimeError("x"))


class TestLogging:
    def test_component_logger_context(self):
        adapter = get_logger_for_component("poller", feed_name="tech")

        assert adapter.logger.name == "sanerss.poller"
        assert adapter.extra == {"component": "poller", "feed_name": "tech"}

    def test_structured_formatter_includes_extra(self):
        record = logging.LogRecord("sanerss.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.feed_name = "tech"

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "hello world"
        assert data["extra"] == {"feed_name": "tech"}

    def test_performance_logger_records_duration(self, caplog):
        logger = logging.getLogger("sanerss.test")
        with caplog.at_level(logging.INFO, logger="sanerss.test"):
            with PerformanceLogger(logger, "poll cycle") as perf:
                pass

        assert perf.duration is not None
        assert "Completed poll cycle" in caplog.text


class TestProcessLock:
    def test_exclusive(self, tmp_path):
        first = ProcessLock("unit", lock_dir=str(tmp_path))
        second = ProcessLock("unit", lock_dir=str(tmp_path))

        assert first.acquire()
        assert not second.acquire()
        assert second.get_lock_holder_pid() is not None

        first.release()
        assert second.acquire()
        second.release()

    def test_release_keeps_contenders_on_one_file(self, tmp_path):
        first = ProcessLock("unit", lock_dir=str(tmp_path))
        assert first.acquire()

        # A contender that opened the file while it was held
        waiting_fd = os.open(str(first.lock_file), os.O_RDWR)
        try:
            first.release()
            assert first.lock_file.exists()

            fcntl.flock(waiting_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            late = ProcessLock("unit", lock_dir=str(tmp_path))
            assert not late.acquire()
        finally:
            os.close(waiting_fd)

    def test_context_manager_raises_when_held(self, tmp_path):
        holder = ProcessLock("unit", lock_dir=str(tmp_path))
        holder.acquire()
        try:
            with pytest.raises(SaneRSSError) as exc_info:
                with ProcessLock("unit", lock_dir=str(tmp_path)):
                    pass
            assert exc_info.value.error_code == ErrorCode.PROCESS_LOCKED
        finally:
            holder.release()

    def test_lock_name_follows_path(self, tmp_path):
        a = lock_for_known_items(tmp_path / "a.json", lock_dir=str(tmp_path))
        same = lock_for_known_items(tmp_path / "x" / ".." / "a.json", lock_dir=str(tmp_path))
        b = lock_for_known_items(tmp_path / "b.json", lock_dir=str(tmp_path))

        assert a.lock_file == same.lock_file
        assert a.lock_file != b.lock_file
