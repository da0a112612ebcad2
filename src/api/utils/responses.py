"""JSON response class serializing with orjson.

Set as the application's default response class, so every endpoint and
every error handler renders through it. orjson handles the datetime fields
of the error and upload schemas natively.
"""

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ORJSONResponse(JSONResponse):
    """JSONResponse rendered with orjson, keys sorted for stable output."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401
        """Render the content as JSON.

        Args:
            content: The content to serialize, possibly a pydantic model.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json")

        return orjson.dumps(
            content, option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS
        )
