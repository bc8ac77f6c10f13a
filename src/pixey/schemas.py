"""Response envelope shared by every JSON endpoint."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """``{success, data?, error?}`` envelope."""

    success: bool = True
    data: T | None = None
    error: str | None = None


def ok(data: T) -> ApiResponse[T]:
    """Wrap a payload in a successful envelope."""
    return ApiResponse(success=True, data=data)
