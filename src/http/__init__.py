"""HTTP request parameter extraction for RPC-style endpoints.

This package turns an inbound HTTP request into typed, validated values:

- **request**: The inbound request boundary and its buffered implementation
- **multipart**: Streaming decomposition of multipart bodies into parts
- **uploads**: Uploaded file handles and upload storage strategies
- **converters**: Date and enum conversion strategies
- **parser**: The parameter store with its typed accessors
"""

from src.http.converters import DateParser, IsoDateParser, StrptimeDateParser
from src.http.parser import HttpRequestParser
from src.http.request import BufferedRequest, InboundRequest
from src.http.uploads import TemporaryUploadHandler, UploadedFile, UploadHandler

__all__ = [
    "BufferedRequest",
    "DateParser",
    "HttpRequestParser",
    "InboundRequest",
    "IsoDateParser",
    "StrptimeDateParser",
    "TemporaryUploadHandler",
    "UploadHandler",
    "UploadedFile",
]
