"""Shared fixtures for request parsing tests."""

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pytest
from pytest_mock import MockerFixture, MockType

from src.core.config import RequestConfig
from src.http.parser import HttpRequestParser
from src.http.request import BufferedRequest
from tests.fixtures.multipart_fixtures import (
    FilePart,
    create_multipart_body,
    multipart_content_type,
)


@pytest.fixture
def request_config() -> RequestConfig:
    """Default request configuration."""
    return RequestConfig()


@pytest.fixture
def disk_config() -> RequestConfig:
    """Configuration writing every upload straight to disk."""
    return RequestConfig(max_memory_file_size=0)


@pytest.fixture
def upload_handler(mocker: MockerFixture, tmp_path: Path) -> MockType:
    """Upload handler provisioning the test's temporary directory."""
    handler = mocker.Mock()
    handler.init_upload.return_value = tmp_path
    return handler


@pytest.fixture
def make_parser(request_config: RequestConfig) -> Callable[..., HttpRequestParser]:
    """Build a parser over a query string, optionally with a URL-encoded body."""

    def _make(
        query_string: str = "", body: str = "", **kwargs: object
    ) -> HttpRequestParser:
        content_type = "application/x-www-form-urlencoded" if body else None
        request = BufferedRequest(
            content_type=content_type,
            query_string=query_string,
            body=body.encode(),
        )
        kwargs.setdefault("config", request_config)
        return HttpRequestParser(request, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def make_multipart_parser(
    request_config: RequestConfig,
) -> Callable[..., HttpRequestParser]:
    """Build a parser over a multipart body."""

    def _make(
        fields: Mapping[str, str] | Sequence[tuple[str, str]] = (),
        files: Sequence[FilePart] = (),
        query_string: str = "",
        **kwargs: object,
    ) -> HttpRequestParser:
        request = BufferedRequest(
            content_type=multipart_content_type(),
            query_string=query_string,
            body=create_multipart_body(fields, files),
        )
        kwargs.setdefault("config", request_config)
        return HttpRequestParser(request, **kwargs)  # type: ignore[arg-type]

    return _make
