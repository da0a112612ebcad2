"""Unit tests for src/http/converters.py."""

from datetime import UTC, datetime, timedelta, timezone
from enum import Enum

import pytest

from src.http.converters import IsoDateParser, StrptimeDateParser, parse_enum


class Shape(Enum):
    CIRCLE = "circle"
    SQUARE = "square"


@pytest.mark.unit
class TestDateParsers:
    """Date parsing strategies."""

    def test_strptime_parser(self) -> None:
        """Test parsing with a fixed format."""
        parser = StrptimeDateParser("%Y-%m-%d %H:%M")

        assert parser.parse("2024-02-29 23:59") == datetime(2024, 2, 29, 23, 59)

    def test_strptime_parser_rejects_other_formats(self) -> None:
        """Test that text in another format raises ValueError."""
        with pytest.raises(ValueError, match="does not match format"):
            StrptimeDateParser("%Y-%m-%d").parse("29/02/2024")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2024-03-01", datetime(2024, 3, 1)),
            ("2024-03-01T10:15:30", datetime(2024, 3, 1, 10, 15, 30)),
            ("2024-03-01T10:15:30+00:00", datetime(2024, 3, 1, 10, 15, 30, tzinfo=UTC)),
            (
                "2024-03-01T10:15:30+02:00",
                datetime(2024, 3, 1, 10, 15, 30, tzinfo=timezone(timedelta(hours=2))),
            ),
        ],
    )
    def test_iso_parser(self, value: str, expected: datetime) -> None:
        """Test ISO 8601 parsing, keeping offsets."""
        assert IsoDateParser().parse(value) == expected

    def test_iso_parser_rejects_garbage(self) -> None:
        """Test that non-ISO text raises ValueError."""
        with pytest.raises(ValueError, match="Invalid isoformat"):
            IsoDateParser().parse("next tuesday")

    def test_strptime_repr(self) -> None:
        """Test the debug representation."""
        assert repr(StrptimeDateParser("%Y")) == "StrptimeDateParser('%Y')"


@pytest.mark.unit
class TestParseEnum:
    """Enum resolution."""

    def test_lookup_by_name(self) -> None:
        """Test the default by-name lookup."""
        assert parse_enum(Shape, "SQUARE") is Shape.SQUARE

    def test_unknown_name(self) -> None:
        """Test that an unknown name raises a LookupError."""
        with pytest.raises(LookupError):
            parse_enum(Shape, "square")

    def test_custom_parser(self) -> None:
        """Test that a registered parse function takes precedence."""
        assert parse_enum(Shape, "square", {Shape: Shape}) is Shape.SQUARE

    def test_custom_parser_for_other_type_is_ignored(self) -> None:
        """Test that parse functions registered for other enums are not used."""
        parsers = {Enum: lambda value: Shape.SQUARE}

        assert parse_enum(Shape, "CIRCLE", parsers) is Shape.CIRCLE

    def test_custom_parser_returning_foreign_value(self) -> None:
        """Test that a parse function must return a member of the requested enum."""
        with pytest.raises(ValueError, match="did not resolve to a Shape member"):
            parse_enum(
                Shape,
                "x",
                {Shape: lambda value: "circle"},  # type: ignore[dict-item]
            )
