"""Tests for ColoredFormatter."""

import logging
from io import StringIO
from unittest.mock import patch

import pytest

from song_request_queue.utils.logging import ColoredFormatter

RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}


def _make_record(level: int, message: str = "test") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


def _tty_stream() -> StringIO:
    stream = StringIO()
    stream.isatty = lambda: True  # type: ignore[method-assign]
    return stream


class TestColoredFormatter:
    """Tests for ANSI color formatting."""

    def _tty_formatter(self, fmt: str = "%(levelname)s | %(message)s") -> ColoredFormatter:
        return ColoredFormatter(fmt, stream=_tty_stream())

    @pytest.mark.parametrize(
        "level",
        [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL],
    )
    def test_color_applied_per_level(self, level: int):
        """Should apply the correct ANSI color code for each level."""
        with patch.dict("os.environ", clear=False) as env:
            env.pop("NO_COLOR", None)
            output = self._tty_formatter().format(_make_record(level))

        assert LEVEL_COLORS[level] in output
        assert RESET in output

    def test_logger_name_is_dimmed(self):
        with patch.dict("os.environ", clear=False) as env:
            env.pop("NO_COLOR", None)
            output = self._tty_formatter("%(name)s %(message)s").format(
                _make_record(logging.INFO)
            )

        assert output.startswith("\033[2mtest.logger")

    def test_no_color_when_no_color_env_set(self):
        """Should not apply colors when NO_COLOR env var is set."""
        with patch.dict("os.environ", {"NO_COLOR": "1"}):
            output = self._tty_formatter().format(_make_record(logging.INFO))

        assert "\033[" not in output

    def test_no_color_when_stream_not_tty(self):
        """Should not apply colors when stream is not a TTY."""
        formatter = ColoredFormatter("%(levelname)s | %(message)s", stream=StringIO())
        output = formatter.format(_make_record(logging.ERROR))

        assert output == "ERROR | test"

    def test_original_record_is_not_mutated(self):
        """Other handlers must still see the plain level name."""
        record = _make_record(logging.WARNING)
        with patch.dict("os.environ", clear=False) as env:
            env.pop("NO_COLOR", None)
            self._tty_formatter().format(record)

        assert record.levelname == "WARNING"
        assert record.name == "test.logger"
