"""Tests for structured logging — fields, formats, process-wide install."""

from __future__ import annotations

import json
import logging

from clix.config import LogFormat, LoggerConfig, LogLevel
from clix.core import logger as clix_logger
from clix.core.logger import FieldLogger, get_logger, install, new_logger


def _json_lines(text: str) -> list[dict]:
    return [json.loads(line) for line in text.splitlines() if line.strip()]


class TestFieldLogger:
    def test_with_fields_is_additive(self):
        base = FieldLogger(logging.getLogger("test.fields"), {"a": 1})
        child = base.with_fields(b=2)
        assert child.fields == {"a": 1, "b": 2}
        assert base.fields == {"a": 1}

    def test_later_fields_win(self):
        log = FieldLogger(logging.getLogger("test.fields")).with_fields(a=1).with_fields(a=2)
        assert log.fields == {"a": 2}

    def test_with_error(self):
        log = FieldLogger(logging.getLogger("test.fields")).with_error(ValueError("boom"))
        assert log.fields == {"error": "boom"}

    def test_fields_reach_records(self, caplog):
        base = logging.getLogger("test.records")
        base.propagate = True
        with caplog.at_level(logging.INFO, logger="test.records"):
            FieldLogger(base).with_fields(user="bob").info("hello")
        assert caplog.records[-1].fields == {"user": "bob"}


class TestNewLogger:
    def test_json_output(self, capsys):
        log = new_logger("test.json", LoggerConfig(format=LogFormat.JSON))
        log.with_fields(request="r1").info("served %s", "page")
        [record] = _json_lines(capsys.readouterr().err)
        assert record["message"] == "served page"
        assert record["level"] == "info"
        assert record["logger"] == "test.json"
        assert record["request"] == "r1"
        assert "time" in record

    def test_text_output(self, capsys):
        log = new_logger("test.text")
        log.with_fields(k="v").warning("careful")
        err = capsys.readouterr().err
        assert "careful" in err
        assert "k=v" in err

    def test_level(self):
        log = new_logger("test.level", LoggerConfig(level=LogLevel.WARNING))
        assert log.logger.level == logging.WARNING

    def test_quiet(self):
        log = new_logger("test.quiet", LoggerConfig(quiet=True))
        assert log.logger.level == logging.ERROR

    def test_debug_beats_quiet(self):
        log = new_logger("test.quiet", LoggerConfig(quiet=True), debug=True)
        assert log.logger.level == logging.DEBUG

    def test_handlers_replaced(self):
        new_logger("test.replace")
        log = new_logger("test.replace")
        assert len(log.logger.handlers) == 1

    def test_file_output(self, tmp_path):
        path = tmp_path / "logs" / "tool.log"
        log = new_logger("test.file", LoggerConfig(format=LogFormat.JSON, path=path))
        log.with_fields(n=3).error("disk full")
        for handler in log.logger.handlers:
            handler.flush()
        [record] = _json_lines(path.read_text())
        assert record["message"] == "disk full"
        assert record["n"] == 3

    def test_exception_in_json(self, capsys):
        log = new_logger("test.exc", LoggerConfig(format=LogFormat.JSON))
        try:
            raise RuntimeError("kaput")
        except RuntimeError:
            log.exception("failed")
        [record] = _json_lines(capsys.readouterr().err)
        assert "RuntimeError: kaput" in record["exception"]


class TestInstall:
    def test_fallback_logger(self):
        assert get_logger().logger.name == "clix"

    def test_install_publishes(self, capsys):
        log = new_logger("test.install", LoggerConfig(format=LogFormat.JSON))
        install(log)
        assert get_logger() is log
        logging.getLogger("some.library").info("from library")
        [record] = _json_lines(capsys.readouterr().err)
        assert record["logger"] == "some.library"

    def test_reinstall_replaces_handlers(self):
        root = logging.getLogger()
        install(new_logger("test.first", LoggerConfig(format=LogFormat.JSON)))
        before = len(root.handlers)
        install(new_logger("test.second", LoggerConfig(format=LogFormat.JSON)))
        assert len(root.handlers) == before

    def test_reset(self):
        install(new_logger("test.reset"))
        clix_logger.reset()
        assert get_logger().logger.name == "clix"

    def test_reinstall_closes_previous_file_handler(self, tmp_path):
        first = new_logger("test.first", LoggerConfig(path=tmp_path / "first.log"))
        install(first)
        file_handler = next(
            h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
        )
        assert file_handler.stream is not None

        install(new_logger("test.second"))
        assert file_handler not in logging.getLogger().handlers
        assert file_handler.stream is None
