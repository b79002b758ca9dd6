"""Response envelopes shared by all single-resource endpoints."""

from typing import Generic, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """``{success: true, data: <record>}``."""

    success: bool = True
    data: T


class CountedResponse(BaseModel, Generic[T]):
    """Unpaginated list: ``{success: true, count: n, data: [...]}``."""

    success: bool = True
    count: int
    data: T


class MessageResponse(BaseModel):
    """Removal result: ``{success: true, data: {}}``."""

    success: bool = True
    data: dict = {}
