"""Sample endpoints reading their input through the request parameter parser."""

from fastapi import APIRouter
from loguru import logger

from src.api.constants import SAMPLES_PREFIX
from src.api.dependencies import RequestParams
from src.api.schemas.requests import (
    AddImageRequest,
    AddImageResponse,
    ArrayListOfObjectsRequest,
    UploadResponse,
)

router = APIRouter(prefix=SAMPLES_PREFIX, tags=["samples"])


@router.post("/images")
async def add_image(params: RequestParams) -> AddImageResponse:
    """Accept an image upload and describe what was received.

    Nothing is stored: the upload is released when the request ends.
    """
    image_request = AddImageRequest.from_parser(params)
    logger.info(
        "Received image {} ({} bytes)",
        image_request.file.original_name,
        image_request.file.size,
    )
    return AddImageResponse(
        image=UploadResponse.from_upload(image_request.file),
        title=image_request.title,
        taken_at=image_request.taken_at,
        public=image_request.public,
    )


@router.api_route("/users", methods=["GET", "POST"])
async def list_users(params: RequestParams) -> ArrayListOfObjectsRequest:
    """Echo the users submitted as indexed list parameters."""
    return ArrayListOfObjectsRequest.from_parser(params)
