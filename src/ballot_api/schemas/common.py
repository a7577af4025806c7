"""Common Pydantic v2 schemas shared across the API."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Envelope wrapping every successful voting/results payload in ``data``."""

    data: T


class MessageResponse(BaseModel):
    """Business error or plain acknowledgement body."""

    message: str = Field(description="Human-readable message")


class ErrorResponse(BaseModel):
    """Authentication/authorization error body."""

    detail: str = Field(description="Human-readable error message")
