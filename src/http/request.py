"""Inbound request boundary consumed by the request parser.

The parser only needs four things from a request: its content type, the
names of its standard parameters (query string and URL-encoded body), a
lookup of one parameter by name, and a readable body stream for multipart
decomposition. ``InboundRequest`` states that contract; ``BufferedRequest``
implements it over an already received body and is what the FastAPI layer
builds from a Starlette request.
"""

import sys
from collections.abc import Iterable, Sequence
from io import BytesIO
from typing import BinaryIO, Protocol, Self

from loguru import logger
from python_multipart.multipart import parse_options_header
from starlette.datastructures import ImmutableMultiDict, QueryParams
from starlette.requests import Request

from src.core.exceptions import RequestDecodingError

FORM_URLENCODED = "application/x-www-form-urlencoded"

MAX_LENGTH_DIGITS = 18


class InboundRequest(Protocol):
    """The request surface the parameter parser reads from."""

    @property
    def content_type(self) -> str | None:
        """Raw Content-Type header value, including parameters."""
        ...

    def parameter_names(self) -> Iterable[str]:
        """Names of the standard request parameters."""
        ...

    def get_parameter(self, name: str) -> str | None:
        """Value of a standard request parameter, None when absent."""
        ...

    def stream(self) -> BinaryIO:
        """Readable request body."""
        ...


def _media_type(content_type: str | None) -> str:
    media_type, _ = parse_options_header(content_type)
    return media_type.decode("latin-1").lower()


def _declared_length(request: Request) -> int | None:
    value = request.headers.get("content-length", "")
    if not (value.isascii() and value.isdigit()):
        return None
    digits = value.lstrip("0") or "0"
    # Longer values exceed any limit that fits the platform word
    return int(digits) if len(digits) <= MAX_LENGTH_DIGITS else sys.maxsize


def _body_too_large(max_body_size: int, received: int) -> RequestDecodingError:
    return RequestDecodingError(
        f"Request body exceeds {max_body_size} bytes",
        context={"max_body_size": max_body_size, "received": received},
    )


class BufferedRequest:
    """An inbound request whose body has been fully received.

    Standard parameters are the query string pairs followed by the pairs of
    an ``application/x-www-form-urlencoded`` body. When a name repeats, the
    first value wins, as with servlet-style ``getParameter``.

    Args:
        content_type: Content-Type header value
        query_string: Raw query string (without the leading '?')
        body: Raw request body
    """

    def __init__(
        self,
        content_type: str | None = None,
        query_string: str = "",
        body: bytes = b"",
    ) -> None:
        self._content_type = content_type
        self._body = body

        pairs: list[tuple[str, str]] = list(QueryParams(query_string).multi_items())
        if _media_type(content_type) == FORM_URLENCODED and body:
            form = QueryParams(body.decode("utf-8", errors="replace"))
            pairs.extend(form.multi_items())
        self._parameters = ImmutableMultiDict(pairs)

    @classmethod
    async def from_starlette(
        cls, request: Request, max_body_size: int | None = None
    ) -> Self:
        """Buffer a Starlette request so it can be parsed synchronously.

        With a size limit, a declared Content-Length above it is refused
        before any of the body is read, and a body that turns out larger is
        refused as soon as the limit is crossed.

        Args:
            request: The incoming Starlette/FastAPI request
            max_body_size: Largest accepted body in bytes, unlimited if None

        Returns:
            BufferedRequest: The buffered request.

        Raises:
            RequestDecodingError: If the body exceeds ``max_body_size``.
        """
        if max_body_size is None:
            body = await request.body()
        else:
            declared = _declared_length(request)
            if declared is not None and declared > max_body_size:
                logger.warning("Refusing request declaring {} body bytes", declared)
                raise _body_too_large(max_body_size, declared)

            buffer = bytearray()
            async for chunk in request.stream():
                buffer.extend(chunk)
                if len(buffer) > max_body_size:
                    logger.warning("Refusing request body over {} bytes", max_body_size)
                    raise _body_too_large(max_body_size, len(buffer))
            body = bytes(buffer)

        return cls(
            content_type=request.headers.get("content-type"),
            query_string=request.url.query,
            body=body,
        )

    @property
    def content_type(self) -> str | None:
        return self._content_type

    @property
    def body(self) -> bytes:
        return self._body

    def parameter_names(self) -> list[str]:
        return list(self._parameters.keys())

    def get_parameter(self, name: str) -> str | None:
        values: Sequence[str] = self._parameters.getlist(name)
        return values[0] if values else None

    def stream(self) -> BinaryIO:
        return BytesIO(self._body)

    def __repr__(self) -> str:
        return (
            f"BufferedRequest(content_type={self._content_type!r}, "
            f"parameters={len(self._parameters)}, body={len(self._body)} bytes)"
        )
