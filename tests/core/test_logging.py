"""Tests for structured logging configuration."""

import json

import structlog

from taskrein.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


def _reconfigure_default():
    configure_logging(level="DEBUG", json_format=False)


class TestJsonOutput:
    def test_json_lines_are_ecs_compatible(self, capsys):
        configure_logging(level="INFO", json_format=True, service="svc-test")
        try:
            get_logger("tests.logging").info("task.completed", elapsed=0.5)
            line = capsys.readouterr().err.strip().splitlines()[-1]
            record = json.loads(line)
        finally:
            _reconfigure_default()

        assert record["event"] == "task.completed"
        assert record["elapsed"] == 0.5
        assert record["log.level"] == "info"
        assert record["service.name"] == "svc-test"
        assert record["logger_name"] == "tests.logging"
        assert "@timestamp" in record

    def test_level_filtering(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        try:
            logger = get_logger("tests.logging")
            logger.info("hidden.event")
            logger.warning("shown.event")
            err = capsys.readouterr().err
        finally:
            _reconfigure_default()

        assert "hidden.event" not in err
        assert "shown.event" in err

    def test_logs_go_to_stderr(self, capsys):
        configure_logging(level="INFO", json_format=True)
        try:
            get_logger("tests.logging").info("stream.check")
            captured = capsys.readouterr()
        finally:
            _reconfigure_default()

        assert "stream.check" in captured.err
        assert "stream.check" not in captured.out


class TestContext:
    def test_log_context_binds_and_unbinds(self):
        clear_context()
        with LogContext(run_id="abc123", runner="single"):
            assert structlog.contextvars.get_contextvars() == {
                "run_id": "abc123",
                "runner": "single",
            }
        assert structlog.contextvars.get_contextvars() == {}

    def test_context_appears_in_output(self, capsys):
        configure_logging(level="INFO", json_format=True)
        try:
            with LogContext(run_id="r-42"):
                get_logger("tests.logging").info("with.context")
            record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        finally:
            _reconfigure_default()
            clear_context()

        assert record["run_id"] == "r-42"

    def test_bind_and_clear(self):
        bind_context(tenant="t1")
        assert structlog.contextvars.get_contextvars()["tenant"] == "t1"
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
