"""Request parameter extraction and validation.

``HttpRequestParser`` turns one inbound request into a read-only store of
string parameters and uploaded files, then answers typed, validated reads
over it.

Parsing happens once, in the constructor:

1. Multipart bodies are decomposed into parts. Simple fields become
   parameters, file parts with a non-empty file name become
   ``UploadedFile`` handles, file parts with an empty name are dropped.
2. The request's standard parameters (query string and URL-encoded body)
   are then added, overwriting multipart fields of the same name.

Accessor contract:

- A mandatory read of an absent parameter raises ``MissingParameterError``.
- A present value that cannot be converted raises ``MalformedParameterError``.
- A value outside its length or range bounds raises
  ``ParameterOutOfBoundsError``.
- Dates, integers and enums treat the empty string as absent.

Indexed lists are parameters named ``<name>[<index>]``. They are collected on
demand from the parameter names and returned in ascending index order. An
index is a run of ASCII digits; names whose index has more than nine
significant digits are ignored.

Uploaded files keep their storage until ``dispose()`` is called by whoever
owns the request, typically after the response has been produced.
"""

import re
from collections.abc import Iterator, Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType, TracebackType
from typing import Self, TypeVar

from loguru import logger

from src.core.config import RequestConfig, get_settings
from src.core.exceptions import (
    MalformedParameterError,
    MissingParameterError,
    ParameterOutOfBoundsError,
)
from src.core.types import EnumParsers
from src.http.converters import DateParser, StrptimeDateParser, parse_enum
from src.http.multipart import MultipartDecomposer, MultipartPart, is_multipart
from src.http.request import InboundRequest
from src.http.uploads import UploadedFile, UploadHandler

E = TypeVar("E", bound=Enum)

TRUE_LITERAL = "true"

# Plain ASCII decimal integers, optionally signed
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

# Longer indexes (leading zeros aside) name no element and are ignored
MAX_INDEX_DIGITS = 9


def _parse_int(value: str) -> int:
    if not INTEGER_PATTERN.fullmatch(value):
        msg = f"invalid decimal integer: {value!r}"
        raise ValueError(msg)
    return int(value)


def _check_mandatory_or_default(mandatory: bool, default: object) -> None:
    if mandatory and default is not None:
        msg = "A mandatory parameter cannot also declare a default value"
        raise ValueError(msg)


class HttpRequestParser:
    """Typed, validated access to the parameters and files of one request.

    Args:
        request: The inbound request to parse
        upload_handler: Optional strategy providing the upload directory
        config: Request parsing configuration (application settings if None)
        date_parser: Strategy for date parameters (configured format if None)
        enum_parsers: Optional per-type parse functions for enum parameters

    Raises:
        RequestDecodingError: If a multipart body cannot be decomposed.
    """

    def __init__(
        self,
        request: InboundRequest,
        upload_handler: UploadHandler | None = None,
        *,
        config: RequestConfig | None = None,
        date_parser: DateParser | None = None,
        enum_parsers: EnumParsers | None = None,
    ) -> None:
        self._config = config or get_settings().request_config
        self._date_parser = date_parser or StrptimeDateParser(self._config.date_format)
        self._enum_parsers = dict(enum_parsers or {})
        self._upload_handler = upload_handler
        self._parameters: dict[str, str] = {}
        self._files: dict[str, UploadedFile] = {}

        self._process(request)

    def _process(self, request: InboundRequest) -> None:
        if is_multipart(request.content_type):
            self._process_multipart(request)
        self._process_parameters(request)

        logger.debug(
            "Parsed request with {} parameters and {} files",
            len(self._parameters),
            len(self._files),
        )

    def _process_multipart(self, request: InboundRequest) -> None:
        upload_dir = self._config.upload_dir
        if self._upload_handler is not None:
            upload_dir = self._upload_handler.init_upload()
        logger.debug(
            "Multipart request, uploads go to {}", upload_dir or "the system temp dir"
        )

        decomposer = MultipartDecomposer(
            upload_dir=upload_dir,
            max_memory_file_size=self._config.max_memory_file_size,
            max_body_size=self._config.max_body_size,
            chunk_size=self._config.chunk_size,
        )
        for part in decomposer.decompose(request.content_type, request.stream()):
            if part.is_form_field:
                self._add_parameter(part.field_name, part.text())
            else:
                self._process_uploaded_file(part)

    def _process_uploaded_file(self, part: MultipartPart) -> None:
        if not part.file_name or part.storage is None:
            logger.debug(
                "Skipping file field {} submitted without a file name", part.field_name
            )
            return

        previous = self._files.get(part.field_name)
        if previous is not None:
            previous.release()

        self._files[part.field_name] = UploadedFile(
            field_name=part.field_name,
            original_name=part.file_name,
            mime_type=part.content_type or "application/octet-stream",
            storage=part.storage,
        )

    def _process_parameters(self, request: InboundRequest) -> None:
        for name in request.parameter_names():
            value = request.get_parameter(name)
            if value is not None:
                self._add_parameter(name, value)

    def _add_parameter(self, name: str, value: str) -> None:
        self._parameters[name] = value

    def _get_text(self, name: str) -> str | None:
        """Return the value of a parameter, treating the empty string as absent."""
        value = self._parameters.get(name)
        if value is None or len(value) == 0:
            return None
        return value

    # Raw access

    def get_parameter(self, name: str) -> str | None:
        """Return the raw string value of a parameter.

        Args:
            name: Parameter name

        Returns:
            str | None: The value, or None when absent.
        """
        return self._parameters.get(name)

    def parameter_names(self) -> list[str]:
        """Return the names of all parameters."""
        return list(self._parameters)

    def __contains__(self, name: object) -> bool:
        return name in self._parameters

    def __len__(self) -> int:
        return len(self._parameters)

    # Typed accessors

    def get_as_date(self, name: str, mandatory: bool = False) -> datetime | None:
        """Read a date parameter using the configured date parser.

        Args:
            name: Parameter name
            mandatory: Raise when the parameter is absent or empty

        Returns:
            datetime | None: The parsed date, or None when absent.

        Raises:
            MissingParameterError: If mandatory and absent.
            MalformedParameterError: If the text does not parse as a date.
        """
        value = self._get_text(name)
        if value is None:
            if mandatory:
                raise MissingParameterError(name)
            return None

        try:
            return self._date_parser.parse(value)
        except ValueError as e:
            raise MalformedParameterError(
                name,
                f"Invalid date format of the parameter {name}",
                context={"value": value},
                cause=e,
            ) from e

    def get_as_int(
        self,
        name: str,
        min_value: int,
        max_value: int,
        mandatory: bool = False,
        default: int | None = None,
    ) -> int | None:
        """Read an integer parameter within ``[min_value, max_value]``.

        Args:
            name: Parameter name
            min_value: Smallest accepted value
            max_value: Largest accepted value
            mandatory: Raise when the parameter is absent or empty
            default: Value returned when the parameter is absent

        Returns:
            int | None: The parsed value, or ``default`` when absent.

        Raises:
            MissingParameterError: If mandatory and absent.
            MalformedParameterError: If the text is not an integer.
            ParameterOutOfBoundsError: If the value lies outside the bounds.
        """
        _check_mandatory_or_default(mandatory, default)

        value = self._get_text(name)
        if value is None:
            if mandatory:
                raise MissingParameterError(name)
            return default

        try:
            result = _parse_int(value)
        except ValueError as e:
            raise MalformedParameterError(
                name,
                f"Value of parameter {name} is not in valid numerical format",
                context={"value": value},
                cause=e,
            ) from e

        if not min_value <= result <= max_value:
            raise ParameterOutOfBoundsError(
                name,
                f"Value of parameter {name} must be between "
                f"{min_value} and {max_value}",
                context={"min_value": min_value, "max_value": max_value},
            )
        return result

    def get_as_string(
        self,
        name: str,
        min_length: int,
        max_length: int,
        mandatory: bool = False,
        default: str | None = None,
    ) -> str | None:
        """Read a string parameter with length bounds.

        The empty string is a present value and is checked like any other.
        A default standing in for an absent value is checked as well.

        Args:
            name: Parameter name
            min_length: Shortest accepted length
            max_length: Longest accepted length
            mandatory: Raise when the parameter is absent
            default: Value returned when the parameter is absent

        Returns:
            str | None: The value, or ``default`` when absent.

        Raises:
            MissingParameterError: If mandatory and absent.
            ParameterOutOfBoundsError: If the value is too short or too long.
        """
        _check_mandatory_or_default(mandatory, default)

        value = self._parameters.get(name)
        if value is None:
            if mandatory:
                raise MissingParameterError(name)
            value = default

        if value is not None and len(value) > max_length:
            raise ParameterOutOfBoundsError(
                name,
                f"String value of parameter {name} too long "
                f"(maximal length is {max_length})",
                context={"max_length": max_length, "length": len(value)},
            )
        if value is not None and len(value) < min_length:
            raise ParameterOutOfBoundsError(
                name,
                f"String value of parameter {name} too short "
                f"(minimal length is {min_length})",
                context={"min_length": min_length, "length": len(value)},
            )
        return value

    def get_as_enum(
        self, name: str, enum_type: type[E], mandatory: bool = False
    ) -> E | None:
        """Read a parameter as a member of ``enum_type``.

        Args:
            name: Parameter name
            enum_type: Target enumeration
            mandatory: Raise when the parameter is absent or empty

        Returns:
            E | None: The member, or None when absent.

        Raises:
            MissingParameterError: If mandatory and absent.
            MalformedParameterError: If the text names no member of the enum.
        """
        value = self._get_text(name)
        if value is None:
            if mandatory:
                raise MissingParameterError(
                    name, context={"enum_type": enum_type.__name__}
                )
            return None
        return self._parse_enum(name, enum_type, value)

    def get_as_enum_with_default(self, name: str, enum_type: type[E], default: E) -> E:
        """Read an enum parameter, falling back to ``default``.

        The default is used both when the parameter is absent and when its
        text names no member of the enum.

        Args:
            name: Parameter name
            enum_type: Target enumeration
            default: Fallback member

        Returns:
            E: The member, or ``default``.
        """
        try:
            member = self.get_as_enum(name, enum_type)
        except MalformedParameterError as e:
            logger.debug(
                "Using default for parameter {}: {}", name, e.message, parameter=name
            )
            return default
        return default if member is None else member

    def get_as_boolean(self, name: str, mandatory: bool = False) -> bool:
        """Read a boolean parameter.

        Only the text ``true``, compared case-insensitively, reads as True.

        Args:
            name: Parameter name
            mandatory: Raise when the parameter is absent

        Returns:
            bool: Whether the parameter reads as true.

        Raises:
            MissingParameterError: If mandatory and absent.
        """
        value = self._parameters.get(name)
        if value is None:
            if mandatory:
                raise MissingParameterError(name)
            return False
        return value.casefold() == TRUE_LITERAL

    def get_as_boolean_with_default(self, name: str, default: bool) -> bool:
        """Read a boolean parameter, using ``default`` when absent or empty."""
        value = self._get_text(name)
        if value is None:
            return default
        return value.casefold() == TRUE_LITERAL

    # Indexed lists

    def _indexed_entries(self, list_name: str) -> list[tuple[int, str]]:
        pattern = re.compile(re.escape(list_name) + r"\[([0-9]+)\]")
        entries = []
        for param_name in self._parameters:
            match = pattern.fullmatch(param_name)
            if not match:
                continue
            digits = match.group(1).lstrip("0") or "0"
            if len(digits) > MAX_INDEX_DIGITS:
                logger.debug("Ignoring {} with an oversized index", list_name)
                continue
            entries.append((int(digits), param_name))
        entries.sort(key=lambda entry: entry[0])
        return entries

    def get_as_list_of_strings(self, list_name: str) -> list[str]:
        """Collect the values of ``list_name[0]``, ``list_name[1]``, ...

        Args:
            list_name: Base name of the indexed parameters

        Returns:
            list[str]: Values in ascending index order; empty when none exist.
        """
        return [
            self._parameters[param_name]
            for _, param_name in self._indexed_entries(list_name)
        ]

    def get_as_list_of_ints(self, list_name: str) -> list[int]:
        """Collect an indexed list and parse every element as an integer.

        Args:
            list_name: Base name of the indexed parameters

        Returns:
            list[int]: Parsed values in ascending index order.

        Raises:
            MalformedParameterError: If an element is not an integer.
        """
        result = []
        for index, param_name in self._indexed_entries(list_name):
            value = self._parameters[param_name]
            try:
                result.append(_parse_int(value))
            except ValueError as e:
                raise MalformedParameterError(
                    list_name,
                    f"Element {param_name} of list {list_name} "
                    "is not in valid numerical format",
                    context={"index": index, "value": value},
                    cause=e,
                ) from e
        return result

    def get_as_list_of_enums(self, list_name: str, enum_type: type[E]) -> list[E]:
        """Collect an indexed list and resolve every non-empty element as an enum.

        Args:
            list_name: Base name of the indexed parameters
            enum_type: Target enumeration

        Returns:
            list[E]: Members in ascending index order; empty elements are skipped.

        Raises:
            MalformedParameterError: If any element names no member of the enum.
        """
        result = []
        for value in self.get_as_list_of_strings(list_name):
            if value:
                result.append(self._parse_enum(list_name, enum_type, value))
        return result

    def _parse_enum(self, name: str, enum_type: type[E], value: str) -> E:
        try:
            return parse_enum(enum_type, value, self._enum_parsers)
        except (LookupError, ValueError) as e:
            raise MalformedParameterError(
                name,
                f"Could not determine value of parameter {name} "
                f"for enum class {enum_type.__name__}",
                context={"enum_type": enum_type.__name__, "value": value},
                cause=e,
            ) from e

    # Files

    @property
    def files(self) -> Mapping[str, UploadedFile]:
        """Read-only view of the uploaded files keyed by field name."""
        return MappingProxyType(self._files)

    def get_file(self, name: str, mandatory: bool = False) -> UploadedFile | None:
        """Return the upload submitted under a field.

        Raises:
            MissingParameterError: If mandatory and no file was submitted.
        """
        upload = self._files.get(name)
        if upload is None and mandatory:
            raise MissingParameterError(name)
        return upload

    def dispose(self) -> None:
        """Release the storage of every uploaded file.

        Safe to call more than once.
        """
        released = 0
        for upload in self._files.values():
            if not upload.released:
                upload.release()
                released += 1
        if released:
            logger.debug("Released {} uploaded files", released)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.dispose()

    def __iter__(self) -> Iterator[str]:
        return iter(self._parameters)

    def __repr__(self) -> str:
        return (
            f"HttpRequestParser(parameters={len(self._parameters)}, "
            f"files={sorted(self._files)})"
        )
