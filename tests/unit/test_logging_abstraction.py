"""Unit tests for the logging abstraction (formatters and AtemLogger)."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

from atem_controller.correlation import correlation_context
from atem_controller.logging_abstraction import AtemLogger, HumanReadableFormatter, JSONFormatter, get_logger

# Test constants
CORRELATION_ID = "0190f3a1-7c2e-7d40-9a6b-1234abcd5678"


def _record(msg: str = "Sent %d bytes", *args: object, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("atem_controller.test", logging.INFO, __file__, 10, msg, args or (24,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def logger_name(request: pytest.FixtureRequest):
    """Unique logger name; handlers removed afterwards."""
    name = f"atem_controller.tests.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestJSONFormatter:
    def test_fields(self) -> None:
        with correlation_context(CORRELATION_ID):
            output = json.loads(JSONFormatter().format(_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "atem_controller.test"
        assert output["message"] == "Sent 24 bytes"
        assert output["correlation_id"] == CORRELATION_ID
        assert "context" not in output

    def test_extra_becomes_context(self) -> None:
        output = json.loads(JSONFormatter().format(_record(device="192.0.2.1:9910", packet_id=3)))

        assert output["context"] == {"device": "192.0.2.1:9910", "packet_id": 3}

    def test_extra_data_merged(self) -> None:
        output = json.loads(JSONFormatter().format(_record(extra_data={"kind": "ack"})))

        assert output["context"] == {"kind": "ack"}

    def test_exception_included(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        output = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad" in output["exception"]


class TestHumanReadableFormatter:
    def test_correlation_suffix(self) -> None:
        with correlation_context(CORRELATION_ID):
            output = HumanReadableFormatter().format(_record())

        assert "[abcd5678] > Sent 24 bytes" in output
        assert " INFO " in output

    def test_placeholder_without_correlation(self) -> None:
        with correlation_context(None, auto_generate=False):
            output = HumanReadableFormatter().format(_record())

        assert "[--------]" in output

    def test_context_appended(self) -> None:
        output = HumanReadableFormatter().format(_record(device="192.0.2.1:9910"))

        assert output.endswith(" | device=192.0.2.1:9910")


class TestAtemLogger:
    def test_human_to_stdout(self, logger_name: str, capsys: pytest.CaptureFixture[str]) -> None:
        atem_logger = AtemLogger(logger_name, log_format="human", level=logging.DEBUG)

        atem_logger.info("Program input → %d", 4, extra={"device": "a"})

        out = capsys.readouterr().out
        assert "Program input → 4" in out
        assert "device=a" in out

    def test_json_without_file_goes_to_stdout(self, logger_name: str, capsys: pytest.CaptureFixture[str]) -> None:
        atem_logger = AtemLogger(logger_name, log_format="json", level=logging.INFO)

        atem_logger.warning("Dropped")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        assert json.loads(line)["message"] == "Dropped"

    def test_both_writes_json_file(self, logger_name: str, tmp_path: Path) -> None:
        json_file = tmp_path / "logs" / "atem.json"
        atem_logger = AtemLogger(
            logger_name,
            log_format="both",
            json_file=json_file,
            human_output=str(tmp_path / "human.log"),
            level=logging.INFO,
        )

        atem_logger.error("Handshake failed", extra={"reason": "timeout"})
        for handler in atem_logger.handlers:
            handler.flush()

        entry = json.loads(json_file.read_text().strip())
        assert entry["context"] == {"reason": "timeout"}
        assert "Handshake failed | reason=timeout" in (tmp_path / "human.log").read_text()

    def test_no_duplicate_handlers(self, logger_name: str) -> None:
        first = AtemLogger(logger_name, log_format="human", level=logging.INFO)
        second = AtemLogger(logger_name, log_format="human", level=logging.INFO)

        assert len(first.handlers) == 1
        assert second.handlers is first.handlers

    def test_set_level(self, logger_name: str) -> None:
        atem_logger = AtemLogger(logger_name, log_format="human", level=logging.INFO)

        atem_logger.set_level(logging.WARNING)

        assert atem_logger.logger.level == logging.WARNING
        assert all(handler.level == logging.WARNING for handler in atem_logger.handlers)

    def test_debug_filtered_at_info(self, logger_name: str, capsys: pytest.CaptureFixture[str]) -> None:
        atem_logger = AtemLogger(logger_name, log_format="human", level=logging.INFO)

        atem_logger.debug("hidden")

        assert "hidden" not in capsys.readouterr().out

    def test_get_logger_overrides(self, logger_name: str) -> None:
        atem_logger = get_logger(logger_name, log_format="json", level=logging.ERROR)

        assert atem_logger.log_format == "json"
        assert atem_logger.logger.level == logging.ERROR
        assert isinstance(atem_logger.handlers[0].formatter, JSONFormatter)
