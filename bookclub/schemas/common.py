"""Shared schema base and the JSON response envelope."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_serializer
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """``{success, message?, data?, count?}``; unset envelope keys are omitted."""

    success: bool = True
    message: str | None = None
    data: T | None = None
    count: int | None = None

    @model_serializer(mode="wrap")
    def _drop_empty(self, handler):
        return {k: v for k, v in handler(self).items() if v is not None}


class MessageResponse(CamelModel):
    success: bool = True
    message: str
