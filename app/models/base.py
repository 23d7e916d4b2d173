"""
Base Pydantic models for the application.
All API request/response models inherit from these base classes.

The mobile client speaks camelCase JSON; fields are snake_case in Python
and aliased on the wire.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from app.utils.timestamps import ensure_utc, format_timestamp

# UTC datetime, serialized to JSON as "2025-11-03T17:25:50.123Z"
Timestamp = Annotated[
    datetime,
    AfterValidator(ensure_utc),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]


class BaseRequest(BaseModel):
    """Base model for all API requests."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class BaseResponse(BaseModel):
    """Base model for all API responses."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        from_attributes=True,
        populate_by_name=True,
    )
