"""Text-to-value conversion strategies used by the typed parameter accessors.

Dates are parsed through a ``DateParser`` handed to the parser at
construction, so each request can use its own format. Enumerations are
parsed through an optional per-type mapping of parse functions; types
without an entry are looked up by member name.
"""

from datetime import datetime
from enum import Enum
from typing import Protocol, TypeVar

from src.core.types import EnumParsers

E = TypeVar("E", bound=Enum)


class DateParser(Protocol):
    """Strategy turning the text of a date parameter into a datetime."""

    def parse(self, value: str) -> datetime:
        """Parse a date.

        Args:
            value: Non-empty parameter text

        Returns:
            datetime: The parsed moment.

        Raises:
            ValueError: If the text does not match the expected format.
        """
        ...


class StrptimeDateParser:
    """Parse dates with a fixed ``datetime.strptime`` format."""

    def __init__(self, date_format: str) -> None:
        self.date_format = date_format

    def parse(self, value: str) -> datetime:
        # The format decides whether the result carries a zone
        return datetime.strptime(value, self.date_format)  # noqa: DTZ007

    def __repr__(self) -> str:
        return f"StrptimeDateParser({self.date_format!r})"


class IsoDateParser:
    """Parse ISO 8601 dates and datetimes, keeping any offset."""

    def parse(self, value: str) -> datetime:
        return datetime.fromisoformat(value)


def parse_enum(enum_type: type[E], value: str, parsers: EnumParsers | None = None) -> E:
    """Resolve a member of ``enum_type`` from its textual form.

    Args:
        enum_type: Target enumeration
        value: Non-empty parameter text
        parsers: Optional per-type parse functions

    Returns:
        E: The resolved member.

    Raises:
        LookupError: If no member matches the text.
        ValueError: If a custom parse function rejects the text.
    """
    if parsers and enum_type in parsers:
        member = parsers[enum_type](value)
        if not isinstance(member, enum_type):
            msg = f"{value!r} did not resolve to a {enum_type.__name__} member"
            raise ValueError(msg)
        return member
    return enum_type[value]
