"""FastAPI dependencies exposing the request parameter parser.

Route handlers declare ``params: RequestParams`` to receive an
``HttpRequestParser`` built from the current request. The body is buffered
on the event loop, the blocking multipart decomposition runs in the
threadpool, and every upload is released once the handler is done.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from loguru import logger
from starlette.concurrency import run_in_threadpool

from src.core.config import Settings, get_settings
from src.http.parser import HttpRequestParser
from src.http.request import BufferedRequest
from src.http.uploads import TemporaryUploadHandler


async def get_request_parser(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncGenerator[HttpRequestParser]:
    """Provide the parsed parameters of the current request.

    Uploads are written to a fresh directory under
    ``request_config.upload_dir``, removed together with its content after
    the handler has finished.

    Yields:
        HttpRequestParser: The parsed request.

    Raises:
        RequestDecodingError: If the request body is too large or cannot be
            decomposed.
    """
    request_config = settings.request_config
    buffered = await BufferedRequest.from_starlette(
        request, max_body_size=request_config.max_body_size
    )
    upload_handler = TemporaryUploadHandler(base_dir=request_config.upload_dir)

    try:
        parser = await run_in_threadpool(
            HttpRequestParser,
            buffered,
            upload_handler,
            config=request_config,
        )
    except Exception:
        upload_handler.cleanup()
        raise

    logger.debug("Parsed request parameters: {!r}", parser)
    try:
        yield parser
    finally:
        parser.dispose()
        upload_handler.cleanup()


RequestParams = Annotated[HttpRequestParser, Depends(get_request_parser)]
