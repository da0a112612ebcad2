"""Data-transfer objects read from request parameters.

These models are filled from an ``HttpRequestParser`` rather than from a
JSON body: each request DTO knows which parameters it reads and with which
bounds, and leaves conversion and validation errors to the parser.
"""

from datetime import datetime
from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from src.api.constants import MAX_USER_AGE, MAX_USER_NAME_LENGTH, MAX_USERS_PER_REQUEST
from src.core.exceptions import MalformedParameterError, ParameterOutOfBoundsError
from src.http.parser import HttpRequestParser
from src.http.uploads import UploadedFile

MAX_TITLE_LENGTH = 256


class Gender(Enum):
    """Gender of a sample user."""

    FEMALE = "female"
    MALE = "male"
    OTHER = "other"


class SortOrder(Enum):
    """Ordering applied to returned users."""

    ASC = "asc"
    DESC = "desc"


class UserDTO(BaseModel):
    """A user as submitted through indexed list parameters."""

    name: str = Field(..., description="Display name", examples=["Alice"])
    age: int | None = Field(default=None, description="Age in years", examples=[30])
    gender: Gender | None = Field(default=None, description="Declared gender")


class ArrayListOfObjectsRequest(BaseModel):
    """A list of users sent as ``name[i]``, ``age[i]`` and ``gender[i]`` parameters.

    ``name`` drives the list; ``age`` and ``gender`` may be omitted entirely
    but, when present, must have one element per name.
    """

    users: list[UserDTO] = Field(default_factory=list)
    order: SortOrder = SortOrder.ASC

    @classmethod
    def from_parser(cls, params: HttpRequestParser) -> Self:
        """Read the request from indexed list parameters.

        Raises:
            MalformedParameterError: If the lists disagree in length or hold
                unparsable elements.
            ParameterOutOfBoundsError: If a name or age is out of range.
        """
        names = params.get_as_list_of_strings("name")
        ages = params.get_as_list_of_ints("age")
        genders = params.get_as_list_of_enums("gender", Gender)

        for list_name, values in (("age", ages), ("gender", genders)):
            if values and len(values) != len(names):
                raise MalformedParameterError(
                    list_name,
                    f"List {list_name} has {len(values)} elements, "
                    f"expected {len(names)}",
                    context={"expected": len(names), "actual": len(values)},
                )

        limit = params.get_as_int(
            "limit", 1, MAX_USERS_PER_REQUEST, default=MAX_USERS_PER_REQUEST
        )
        users = []
        for index, name in enumerate(names[:limit]):
            if len(name) > MAX_USER_NAME_LENGTH:
                raise ParameterOutOfBoundsError(
                    "name",
                    f"Element name[{index}] is longer than "
                    f"{MAX_USER_NAME_LENGTH} characters",
                    context={"index": index},
                )
            age = ages[index] if ages else None
            if age is not None and not 0 <= age <= MAX_USER_AGE:
                raise ParameterOutOfBoundsError(
                    "age",
                    f"Element age[{index}] must be between 0 and {MAX_USER_AGE}",
                    context={"index": index, "value": age},
                )
            users.append(
                UserDTO(name=name, age=age, gender=genders[index] if genders else None)
            )

        order = params.get_as_enum_with_default("order", SortOrder, SortOrder.ASC)
        users.sort(key=lambda user: user.name, reverse=order is SortOrder.DESC)
        return cls(users=users, order=order)


class AddImageRequest(BaseModel):
    """An image upload with optional metadata."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    file: UploadedFile
    title: str | None = None
    taken_at: datetime | None = None
    public: bool = False

    @classmethod
    def from_parser(cls, params: HttpRequestParser) -> Self:
        """Read the request from a multipart submission.

        Raises:
            MissingParameterError: If no file was submitted.
            MalformedParameterError: If ``taken_at`` is not a valid date.
            ParameterOutOfBoundsError: If ``title`` is too long.
        """
        upload = params.get_file("file", mandatory=True)
        return cls(
            file=upload,
            title=params.get_as_string("title", 0, MAX_TITLE_LENGTH),
            taken_at=params.get_as_date("taken_at"),
            public=params.get_as_boolean_with_default("public", default=False),
        )


class UploadResponse(BaseModel):
    """Metadata of a received upload."""

    field_name: str = Field(..., examples=["file"])
    original_name: str = Field(..., examples=["pic.png"])
    mime_type: str = Field(..., examples=["image/png"])
    size: int = Field(..., ge=0, examples=[2048])

    @classmethod
    def from_upload(cls, upload: UploadedFile) -> Self:
        return cls(
            field_name=upload.field_name,
            original_name=upload.original_name,
            mime_type=upload.mime_type,
            size=upload.size,
        )


class AddImageResponse(BaseModel):
    """What the server understood of an image upload."""

    image: UploadResponse
    title: str | None = None
    taken_at: datetime | None = None
    public: bool = False
