"""Tests for structured logging."""

import io
import json
import logging
import sys

import pytest

from fittrack_workers.logging import JSONFormatter, TextFormatter, setup_logging


def _record(msg: str = "hello %s", args: tuple = ("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="fittrack_workers.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "fittrack_workers.test"
        assert entry["message"] == "hello world"
        assert "timestamp" in entry
        assert "context" not in entry
        assert "exception" not in entry

    def test_collects_prefixed_extras_under_context(self):
        record = _record(fittrack_workout_id=7, fittrack_event_type="workout.created", other="x")
        entry = json.loads(JSONFormatter().format(record))
        assert entry["context"] == {"workout_id": 7, "event_type": "workout.created"}
        assert "other" not in entry

    def test_includes_exception(self):
        record = _record()
        try:
            raise ValueError("bad payload")
        except ValueError:
            record.exc_info = sys.exc_info()
        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad payload" in entry["exception"]


def test_text_formatter_appends_sorted_context():
    line = TextFormatter().format(_record(fittrack_workout_id=3, fittrack_event_type="workout.deleted"))
    assert line.endswith("fittrack_workers.test: hello world event_type=workout.deleted workout_id=3")


class TestSetupLogging:
    def test_json_format_installs_single_handler(self, root_logger):
        setup_logging("json")
        setup_logging("json")
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)
        assert root_logger.level == logging.INFO

    def test_text_format_and_level_name(self, root_logger):
        setup_logging("text", "DEBUG")
        assert isinstance(root_logger.handlers[0].formatter, TextFormatter)
        assert root_logger.level == logging.DEBUG
        assert logging.getLogger("psycopg").level == logging.INFO

    def test_writes_to_given_stream(self, root_logger):
        stream = io.StringIO()
        setup_logging("json", stream=stream)
        logging.getLogger("fittrack_workers.test").info(
            "Workout %s raised", 4, extra={"fittrack_workout_id": 4},
        )
        entry = json.loads(stream.getvalue())
        assert entry["message"] == "Workout 4 raised"
        assert entry["context"] == {"workout_id": 4}
