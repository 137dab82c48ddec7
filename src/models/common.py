# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared response shapes.

Every endpoint answers with the same envelope:
``{"success": bool, "data": T | null, "error": str | null}``.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ActionResponse(BaseModel, Generic[T]):
    """Uniform result envelope.

    Attributes:
        success: True when the operation completed.
        data: Operation result on success.
        error: Human-readable message on failure.
    """

    success: bool = True
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "ActionResponse[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResponse[T]":
        return cls(success=False, error=error)


class PageResponse(BaseModel, Generic[T]):
    """One page of a listing."""

    items: list[T] = Field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0


class CountResponse(BaseModel):
    """Number of rows affected by a bulk operation."""

    count: int


class SuccessResponse(BaseModel):
    """Acknowledgement for operations without a payload."""

    success: bool = True


class BulkResult(BaseModel):
    """Per-item outcome of a bulk operation."""

    succeeded: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
