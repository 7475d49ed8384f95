"""Lesson catalog request and response schemas."""

import math
from typing import Any, List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from ..core.config import settings
from ._strict_base import CamelResponseModel, StrictRequestModel
from .base import Money
from .base_responses import PaginationMeta

LessonSortField = Literal["topic", "location", "price", "spaces"]
SortOrder = Literal["asc", "desc"]


# Largest values the store columns hold: INTEGER capacity, Numeric(10, 2) price.
MAX_INTEGER = 2_147_483_647
MAX_PRICE = 99_999_999.99


def _non_negative_int(value: Any, message: str, too_large: Optional[str] = None) -> int:
    if isinstance(value, bool):
        raise ValueError(message)
    if isinstance(value, str):
        value = value.strip()
        if not value.lstrip("-").isdigit():
            raise ValueError(message)
        try:
            value = int(value)
        except ValueError:
            raise ValueError(too_large or message) from None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value < 0:
        raise ValueError(message)
    if value > MAX_INTEGER:
        raise ValueError(too_large or message)
    return value


def _non_negative_number(
    value: Any, message: str, maximum: Optional[float] = None, too_large: Optional[str] = None
) -> float:
    if isinstance(value, bool):
        raise ValueError(message)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(message) from None
    if not math.isfinite(number) or number < 0:
        raise ValueError(message)
    if maximum is not None and round(number, 2) > maximum:
        raise ValueError(too_large or message)
    return number


class LessonQueryParams(StrictRequestModel):
    """Filters, sorting and pagination for ``GET /lessons``."""

    search: Optional[str] = None
    topic: Optional[str] = None
    location: Optional[str] = None
    sort_by: LessonSortField = Field(default="topic", alias="sortBy")
    order: SortOrder = "asc"
    min_price: Optional[float] = Field(default=None, alias="minPrice")
    max_price: Optional[float] = Field(default=None, alias="maxPrice")
    min_spaces: Optional[int] = Field(default=None, alias="minSpaces")
    page: int = 1
    limit: int = Field(default_factory=lambda: settings.default_page_size)

    @field_validator("sort_by", mode="before")
    @classmethod
    def _validate_sort_by(cls, v: Any) -> Any:
        if v is None or v == "":
            return "topic"
        if v not in ("topic", "location", "price", "spaces"):
            raise ValueError("Invalid sort field")
        return v

    @field_validator("order", mode="before")
    @classmethod
    def _validate_order(cls, v: Any) -> Any:
        if v is None or v == "":
            return "asc"
        if v not in ("asc", "desc"):
            raise ValueError("Order must be asc or desc")
        return v

    @field_validator("min_price", mode="before")
    @classmethod
    def _validate_min_price(cls, v: Any) -> Optional[float]:
        if v is None or v == "":
            return None
        return _non_negative_number(v, "Min price must be positive")

    @field_validator("max_price", mode="before")
    @classmethod
    def _validate_max_price(cls, v: Any) -> Optional[float]:
        if v is None or v == "":
            return None
        return _non_negative_number(v, "Max price must be positive")

    @field_validator("min_spaces", mode="before")
    @classmethod
    def _validate_min_spaces(cls, v: Any) -> Optional[int]:
        if v is None or v == "":
            return None
        return _non_negative_int(
            v, "Min spaces must be non-negative", f"Min spaces must be at most {MAX_INTEGER}"
        )

    @field_validator("page", mode="before")
    @classmethod
    def _validate_page(cls, v: Any) -> int:
        if v is None or v == "":
            return 1
        page = _non_negative_int(v, "Page must be a positive integer")
        if page < 1:
            raise ValueError("Page must be a positive integer")
        return page

    @field_validator("limit", mode="before")
    @classmethod
    def _validate_limit(cls, v: Any) -> int:
        if v is None or v == "":
            return settings.default_page_size
        message = f"Limit must be between 1 and {settings.max_page_size}"
        limit = _non_negative_int(v, message)
        if not 1 <= limit <= settings.max_page_size:
            raise ValueError(message)
        return limit

    @field_validator("search", "topic", "location")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def descending(self) -> bool:
        return self.order == "desc"

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class LessonUpdate(StrictRequestModel):
    """
    Administrative field update for ``PUT /lessons/{id}``.

    Only the fields present in the body are written. ``space`` is accepted
    as the legacy spelling of ``spaces``.
    """

    topic: Optional[str] = None
    location: Optional[str] = None
    price: Optional[float] = None
    spaces: Optional[int] = None
    space: Optional[int] = None
    description: Optional[str] = None
    image: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _require_fields(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data:
            raise ValueError("No update data provided")
        return data

    @field_validator("topic")
    @classmethod
    def _validate_topic(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v:
            raise ValueError("Topic cannot be empty")
        return v

    @field_validator("location")
    @classmethod
    def _validate_location(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v:
            raise ValueError("Location cannot be empty")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def _validate_price(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        return _non_negative_number(
            v,
            "Price must be a positive number",
            maximum=MAX_PRICE,
            too_large=f"Price must be at most {MAX_PRICE:.2f}",
        )

    @field_validator("spaces", mode="before")
    @classmethod
    def _validate_spaces(cls, v: Any) -> Optional[int]:
        if v is None:
            return None
        return _non_negative_int(
            v, "Spaces must be a non-negative integer", f"Spaces must be at most {MAX_INTEGER}"
        )

    @field_validator("space", mode="before")
    @classmethod
    def _validate_space(cls, v: Any) -> Optional[int]:
        if v is None:
            return None
        return _non_negative_int(
            v, "Space must be a non-negative integer", f"Space must be at most {MAX_INTEGER}"
        )

    @model_validator(mode="after")
    def _spaces_agree(self) -> "LessonUpdate":
        if self.spaces is not None and self.space is not None and self.spaces != self.space:
            raise ValueError("Spaces and space must be equal when both are provided")
        return self

    def to_fields(self) -> dict:
        """Fields explicitly sent by the client, with ``None`` values dropped."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class LessonResponse(CamelResponseModel):
    """Lesson as returned to clients, with capacity normalized and display fields derived."""

    id: str
    topic: str
    location: str
    price: Money
    spaces: int
    space: int
    available: bool
    description: Optional[str] = None
    image: Optional[str] = None
    image_url: str


class LessonListData(CamelResponseModel):
    lessons: List[LessonResponse]
    pagination: PaginationMeta


class TopicBreakdown(CamelResponseModel):
    topic: str
    count: int
    total_spaces: int
    average_price: Money


class LessonStats(CamelResponseModel):
    total_lessons: int
    total_spaces: int
    average_price: Money
    min_price: Money
    max_price: Money
    available_lessons: int
    percentage_available: float
    by_topic: List[TopicBreakdown]
