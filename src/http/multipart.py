"""Decomposition of multipart request bodies into named parts.

The body is fed through python-multipart's streaming ``MultipartParser``
chunk by chunk. Each part ends up as a ``MultipartPart``: simple fields keep
their bytes in memory, file parts with a non-empty file name stream into a
python-multipart ``File`` (memory first, spilling to a temporary file in the
upload directory past the configured threshold). File parts whose file name
is empty are recorded without storage and their bytes are discarded.

Any failure aborts decomposition with ``RequestDecodingError`` after every
storage object opened so far has been closed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from loguru import logger
from python_multipart import MultipartParser
from python_multipart.decoders import Base64Decoder, QuotedPrintableDecoder
from python_multipart.exceptions import FormParserError, MultipartParseError
from python_multipart.multipart import File, MultipartState, parse_options_header

from src.core.exceptions import RequestDecodingError

if TYPE_CHECKING:
    from typing import BinaryIO

DEFAULT_CONTENT_TYPE: Final[str] = "application/octet-stream"
IDENTITY_ENCODINGS: Final[frozenset[bytes]] = frozenset({b"binary", b"8bit", b"7bit"})


def is_multipart(content_type: str | None) -> bool:
    """Tell whether a Content-Type header announces a multipart body.

    Args:
        content_type: Raw Content-Type header value

    Returns:
        bool: True for any ``multipart/*`` media type.
    """
    media_type, _ = parse_options_header(content_type)
    return media_type.lower().startswith(b"multipart/")


def _decode_text(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


@dataclass
class MultipartPart:
    """One decoded part of a multipart body.

    ``file_name`` is None for simple fields. ``storage`` is set only for file
    parts with a non-empty file name.
    """

    field_name: str
    file_name: str | None = None
    content_type: str | None = None
    data: bytearray = field(default_factory=bytearray)
    storage: File | None = None

    @property
    def is_form_field(self) -> bool:
        return self.file_name is None

    def text(self) -> str:
        """Field content decoded as UTF-8, undecodable bytes replaced."""
        return self.data.decode("utf-8", errors="replace")

    def write(self, chunk: bytes) -> int:
        if self.storage is not None:
            return self.storage.write(chunk)
        if self.file_name is None:
            self.data.extend(chunk)
        return len(chunk)

    def finalize(self) -> None:
        if self.storage is not None:
            self.storage.finalize()

    def close(self) -> None:
        if self.storage is not None:
            self.storage.close()


class MultipartDecomposer:
    """Split one multipart body into ``MultipartPart`` objects.

    Args:
        upload_dir: Directory receiving spilled upload content (system temp if None)
        max_memory_file_size: Bytes kept in memory before an upload spills to disk
        max_body_size: Largest accepted body in bytes (unlimited if None)
        chunk_size: Bytes read from the stream per parser write
    """

    def __init__(
        self,
        upload_dir: str | os.PathLike[str] | None = None,
        max_memory_file_size: int = 10 * 1024,
        max_body_size: int | None = None,
        chunk_size: int = 64 * 1024,
    ) -> None:
        self.upload_dir = os.fspath(upload_dir) if upload_dir is not None else None
        self.max_memory_file_size = max_memory_file_size
        self.max_body_size = max_body_size
        self.chunk_size = chunk_size

        self._parts: list[MultipartPart] = []
        self._current: MultipartPart | None = None
        self._writer: Any = None
        self._headers: dict[bytes, bytes] = {}
        self._header_field = bytearray()
        self._header_value = bytearray()

    @property
    def file_config(self) -> dict[str, Any]:
        return {
            "UPLOAD_DIR": self.upload_dir,
            "MAX_MEMORY_FILE_SIZE": self.max_memory_file_size,
            "UPLOAD_KEEP_FILENAME": False,
            "UPLOAD_KEEP_EXTENSIONS": False,
            "UPLOAD_DELETE_TMP": True,
        }

    def decompose(
        self, content_type: str | None, stream: BinaryIO
    ) -> list[MultipartPart]:
        """Decompose a multipart body.

        Args:
            content_type: Content-Type header carrying the boundary
            stream: Readable body

        Returns:
            list[MultipartPart]: Parts in body order.

        Raises:
            RequestDecodingError: If the body cannot be decomposed.
        """
        _, options = parse_options_header(content_type)
        boundary = options.get(b"boundary")
        if not boundary:
            raise RequestDecodingError(
                "Multipart request without boundary",
                context={"content_type": content_type},
            )

        parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
            },
        )

        received = 0
        try:
            while chunk := stream.read(self.chunk_size):
                received += len(chunk)
                if self.max_body_size is not None and received > self.max_body_size:
                    raise RequestDecodingError(
                        f"Multipart body exceeds {self.max_body_size} bytes",
                        context={"max_body_size": self.max_body_size},
                    )
                parser.write(chunk)
            parser.finalize()
            if parser.state != MultipartState.END:
                raise RequestDecodingError(
                    "Multipart body ended before its closing boundary",
                    context={"parts_read": len(self._parts)},
                )
        except RequestDecodingError:
            self._discard()
            raise
        except (FormParserError, OSError) as e:
            parts_read = len(self._parts)
            self._discard()
            logger.warning("Failed to decode multipart body: {}", e)
            raise RequestDecodingError(
                f"Malformed multipart body: {e}",
                context={"parts_read": parts_read},
                cause=e,
            ) from e

        logger.debug(
            "Decomposed multipart body into {} parts ({} bytes)",
            len(self._parts),
            received,
        )
        return self._parts

    def _discard(self) -> None:
        if self._current is not None:
            self._current.close()
        for part in self._parts:
            part.close()
        self._parts = []
        self._current = None

    def _on_part_begin(self) -> None:
        self._headers = {}
        self._header_field.clear()
        self._header_value.clear()

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field.extend(data[start:end])

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value.extend(data[start:end])

    def _on_header_end(self) -> None:
        name = bytes(self._header_field).strip().lower()
        self._headers[name] = bytes(self._header_value).strip()
        self._header_field.clear()
        self._header_value.clear()

    def _on_headers_finished(self) -> None:
        disposition, options = parse_options_header(
            self._headers.get(b"content-disposition")
        )
        if disposition != b"form-data" or b"name" not in options:
            raise MultipartParseError(
                "Part without a form-data Content-Disposition name"
            )

        field_name = _decode_text(options[b"name"])
        raw_file_name = options.get(b"filename")
        part = MultipartPart(field_name=field_name)

        if raw_file_name is not None:
            part.file_name = _decode_text(raw_file_name)
            raw_content_type = self._headers.get(b"content-type")
            part.content_type = (
                _decode_text(raw_content_type)
                if raw_content_type
                else DEFAULT_CONTENT_TYPE
            )
            if part.file_name:
                part.storage = File(
                    raw_file_name, options[b"name"], config=self.file_config
                )

        self._current = part
        self._writer = self._select_writer(part)

    def _select_writer(self, part: MultipartPart) -> Any:
        encoding = self._headers.get(b"content-transfer-encoding", b"7bit").lower()
        if encoding in IDENTITY_ENCODINGS:
            return part
        if encoding == b"base64":
            return Base64Decoder(part)
        if encoding == b"quoted-printable":
            return QuotedPrintableDecoder(part)
        logger.warning(
            "Unknown Content-Transfer-Encoding {!r}, reading part as-is", encoding
        )
        return part

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._writer.write(data[start:end])

    def _on_part_end(self) -> None:
        if self._current is None:
            return
        self._writer.finalize()
        self._parts.append(self._current)
        self._current = None
        self._writer = None
