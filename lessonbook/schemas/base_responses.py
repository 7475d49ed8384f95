"""
Base response schemas for standardized API responses.

Every endpoint answers with the same envelope:
``{"status": "success" | "fail" | "error", "data": ..., "message": ...}``.
``fail`` is used for client errors (4xx), ``error`` for server faults (5xx).
"""

import math
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

EnvelopeStatus = Literal["success", "fail", "error"]


class ApiResponse(BaseModel, Generic[T]):
    """Standard response envelope."""

    status: EnvelopeStatus = "success"
    data: Optional[T] = None
    message: Optional[str] = None


class PaginationMeta(BaseModel):
    """Pagination metadata for list endpoints."""

    total: int = Field(description="Total number of matching items", ge=0)
    page: int = Field(description="Current page number (1-based)", ge=1)
    limit: int = Field(description="Items per page", ge=1)
    pages: int = Field(description="Total number of pages", ge=0)

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        return cls(total=total, page=page, limit=limit, pages=math.ceil(total / limit))


def envelope_status_for(status_code: int) -> EnvelopeStatus:
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "fail"
    return "success"
