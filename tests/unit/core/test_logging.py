"""Unit tests for src/core/logging.py."""

import logging
from collections.abc import Generator
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import orjson
import pytest
from pytest_mock import MockerFixture

from src.core.config import LogConfig, Settings
from src.core.logging import (
    REDACTED,
    InterceptHandler,
    _state,
    format_console_with_context,
    serialize_for_json,
    setup_logging,
)


def make_record(**extra: Any) -> dict[str, Any]:
    return {
        "time": datetime(2026, 3, 14, 12, 0, 0, 123000, tzinfo=UTC),
        "level": SimpleNamespace(name="INFO"),
        "message": "Parsed request",
        "name": "src.http.parser",
        "function": "_process",
        "line": 42,
        "extra": extra,
        "exception": None,
    }


@pytest.fixture
def reset_logging_state() -> Generator[None]:
    """Allow setup_logging to run again within a test."""
    _state.configured = False
    yield
    _state.configured = False


@pytest.mark.unit
class TestConsoleFormatter:
    """Human-readable console output."""

    def test_includes_location_and_message_placeholder(self) -> None:
        """Test the basic layout of a console line."""
        line = format_console_with_context(make_record())

        assert "2026-03-14 12:00:00.123" in line
        assert "src.http.parser:_process:42" in line
        assert line.endswith("{message}\n")

    def test_priority_fields_first(self) -> None:
        """Test that well-known context fields lead the context block."""
        record = make_record(zeta="z", correlation_id="1234567890ab")

        line = format_console_with_context(record)

        assert line.index("correlation_id=12345678") < line.index("zeta=z")

    def test_sensitive_fields_are_redacted(self) -> None:
        """Test that configured sensitive fields never reach the output."""
        line = format_console_with_context(make_record(password="hunter2"))

        assert "hunter2" not in line
        assert f"password={REDACTED}" in line

    def test_braces_and_markup_are_escaped(self) -> None:
        """Test that field values cannot inject format placeholders or markup."""
        line = format_console_with_context(make_record(value="{0} <red>"))

        assert "value={{0}} \\<red>" in line

    def test_private_and_none_fields_are_skipped(self) -> None:
        """Test that private or empty fields are left out."""
        line = format_console_with_context(make_record(_internal="x", empty=None))

        assert "_internal" not in line
        assert "empty" not in line

    def test_exception_placeholder(self) -> None:
        """Test that records carrying an exception get the traceback placeholder."""
        record = make_record()
        record["exception"] = object()

        assert format_console_with_context(record).endswith("{message}\n{exception}\n")


@pytest.mark.unit
class TestJsonSerializer:
    """Structured JSON output."""

    def test_entry_fields(self) -> None:
        """Test the keys of a JSON log entry."""
        entry = orjson.loads(serialize_for_json(make_record(parameter="age")))

        assert entry["message"] == "Parsed request"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "src.http.parser"
        assert entry["line"] == 42
        assert entry["parameter"] == "age"

    def test_sensitive_fields_are_redacted(self) -> None:
        """Test redaction in structured output."""
        entry = orjson.loads(serialize_for_json(make_record(token="abc")))

        assert entry["token"] == REDACTED

    def test_non_serializable_values_fall_back_to_str(self) -> None:
        """Test that arbitrary objects are rendered as strings."""
        record = make_record(path_obj=SimpleNamespace(a=1))

        entry = orjson.loads(serialize_for_json(record))

        assert entry["path_obj"] == "namespace(a=1)"

    def test_exception_summary(self) -> None:
        """Test that exceptions are summarized by type and value."""
        record = make_record()
        record["exception"] = SimpleNamespace(type=ValueError, value=ValueError("bad"))

        entry = orjson.loads(serialize_for_json(record))

        assert entry["exception"] == {"type": "ValueError", "value": "bad"}


@pytest.mark.unit
class TestSetupLogging:
    """Logging configuration."""

    @pytest.mark.usefixtures("reset_logging_state")
    @pytest.mark.parametrize("formatter", ["console", "json"])
    def test_configures_once(self, mocker: MockerFixture, formatter: str) -> None:
        """Test that setup replaces the handlers once and ignores later calls."""
        mock_logger = mocker.patch("src.core.logging.logger")
        log_config = LogConfig(log_formatter_type=formatter)  # type: ignore[arg-type]
        settings = Settings(log_config=log_config)

        setup_logging(settings)
        setup_logging(settings)

        mock_logger.remove.assert_called_once()
        mock_logger.add.assert_called_once()
        assert _state.configured

    @pytest.mark.usefixtures("reset_logging_state")
    def test_routes_standard_logging(self, mocker: MockerFixture) -> None:
        """Test that stdlib and uvicorn loggers are intercepted."""
        mocker.patch("src.core.logging.logger")

        setup_logging(Settings(log_config=LogConfig(log_formatter_type="console")))

        root_handlers = logging.getLogger().handlers
        assert any(isinstance(h, InterceptHandler) for h in root_handlers)
        assert isinstance(logging.getLogger("uvicorn").handlers[0], InterceptHandler)
        assert logging.getLogger("python_multipart").level == logging.WARNING


@pytest.mark.unit
class TestInterceptHandler:
    """Forwarding of standard library records."""

    def test_forwards_to_loguru(self, mocker: MockerFixture) -> None:
        """Test that a stdlib record is re-emitted through Loguru."""
        mock_logger = mocker.patch("src.core.logging.logger")
        mock_logger.level.return_value = SimpleNamespace(name="WARNING")
        record = logging.LogRecord(
            "uvicorn", logging.WARNING, __file__, 1, "hello %s", ("you",), None
        )

        InterceptHandler().emit(record)

        mock_logger.opt.return_value.log.assert_called_once_with("WARNING", "hello you")

    def test_unknown_level_uses_number(self, mocker: MockerFixture) -> None:
        """Test that custom stdlib levels are forwarded by number."""
        mock_logger = mocker.patch("src.core.logging.logger")
        mock_logger.level.side_effect = ValueError("unknown level")
        record = logging.LogRecord("x", 25, __file__, 1, "custom", (), None)
        record.levelname = "NOTICE"

        InterceptHandler().emit(record)

        mock_logger.opt.return_value.log.assert_called_once_with(25, "custom")
