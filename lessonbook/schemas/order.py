"""Order request and response schemas."""

from datetime import datetime
import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from ..core.config import settings
from ..core.ulid_helper import is_valid_ulid
from ..models.order import OrderStatus, PaymentStatus
from ._strict_base import CamelResponseModel, StrictRequestModel
from .base import Money
from .base_responses import PaginationMeta
from .lesson import MAX_INTEGER

NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")
PHONE_PATTERN = re.compile(r"^[\d\s\-+()]+$")

OrderSortField = Literal["createdAt", "totalAmount", "name"]


class OrderItemCreate(StrictRequestModel):
    """One requested line item."""

    lesson_id: str = Field(alias="lessonId")
    quantity: int

    @field_validator("lesson_id", mode="before")
    @classmethod
    def _validate_lesson_id(cls, v: Any) -> str:
        if not isinstance(v, str) or not is_valid_ulid(v.strip()):
            raise ValueError("Invalid lesson ID")
        return v.strip()

    @field_validator("quantity", mode="before")
    @classmethod
    def _validate_quantity(cls, v: Any) -> int:
        # JSON integers only: no bools, floats or numeric strings.
        if isinstance(v, bool) or not isinstance(v, int) or v < 1:
            raise ValueError("Quantity must be at least 1")
        if v > MAX_INTEGER:
            raise ValueError(f"Quantity must be at most {MAX_INTEGER}")
        return v


class OrderCreate(StrictRequestModel):
    """Body of ``POST /orders``."""

    name: str
    phone: str
    lessons: List[OrderItemCreate]

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Name is required")
        if not NAME_PATTERN.match(v.strip()):
            raise ValueError("Name must contain only letters and spaces")
        return v.strip()

    @field_validator("phone", mode="before")
    @classmethod
    def _validate_phone(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Phone is required")
        if not PHONE_PATTERN.match(v.strip()):
            raise ValueError("Invalid phone format")
        return v.strip()

    @field_validator("lessons", mode="before")
    @classmethod
    def _validate_lessons(cls, v: Any) -> Any:
        if not isinstance(v, list) or not v:
            raise ValueError("At least one lesson is required")
        return v


class OrderQueryParams(StrictRequestModel):
    """Filters, sorting and pagination for ``GET /orders``."""

    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = Field(default=None, alias="paymentStatus")
    sort_by: OrderSortField = Field(default="createdAt", alias="sortBy")
    order: Literal["asc", "desc"] = "desc"
    page: int = 1
    limit: int = Field(default_factory=lambda: settings.default_page_size)

    @field_validator("status", mode="before")
    @classmethod
    def _validate_status(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        if v not in {s.value for s in OrderStatus}:
            raise ValueError("Invalid order status")
        return v

    @field_validator("payment_status", mode="before")
    @classmethod
    def _validate_payment_status(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        if v not in {s.value for s in PaymentStatus}:
            raise ValueError("Invalid payment status")
        return v

    @field_validator("sort_by", mode="before")
    @classmethod
    def _validate_sort_by(cls, v: Any) -> Any:
        if v is None or v == "":
            return "createdAt"
        if v not in ("createdAt", "totalAmount", "name"):
            raise ValueError("Invalid sort field")
        return v

    @field_validator("order", mode="before")
    @classmethod
    def _validate_order(cls, v: Any) -> Any:
        if v is None or v == "":
            return "desc"
        if v not in ("asc", "desc"):
            raise ValueError("Order must be asc or desc")
        return v

    @field_validator("page", mode="before")
    @classmethod
    def _validate_page(cls, v: Any) -> int:
        if v is None or v == "":
            return 1
        try:
            page = int(str(v))
        except ValueError:
            raise ValueError("Page must be a positive integer") from None
        if not 1 <= page <= MAX_INTEGER:
            raise ValueError("Page must be a positive integer")
        return page

    @field_validator("limit", mode="before")
    @classmethod
    def _validate_limit(cls, v: Any) -> int:
        if v is None or v == "":
            return settings.default_page_size
        message = f"Limit must be between 1 and {settings.max_page_size}"
        try:
            limit = int(str(v))
        except ValueError:
            raise ValueError(message) from None
        if not 1 <= limit <= settings.max_page_size:
            raise ValueError(message)
        return limit

    @property
    def descending(self) -> bool:
        return self.order == "desc"

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class OrderItemResponse(CamelResponseModel):
    """Line item snapshot captured when the order was placed."""

    lesson_id: str
    topic: str
    location: str
    price: Money
    quantity: int
    amount: Money


class OrderResponse(CamelResponseModel):
    id: str
    name: str
    phone: str
    lessons: List[OrderItemResponse] = Field(validation_alias="items", serialization_alias="lessons")
    total_amount: Money
    status: str
    payment_status: str
    confirmation_code: str
    created_at: datetime
    updated_at: datetime


class OrderListData(CamelResponseModel):
    orders: List[OrderResponse]
    pagination: PaginationMeta


class DailyTrendPoint(CamelResponseModel):
    date: str
    count: int
    revenue: Money


class OrderStats(CamelResponseModel):
    total_orders: int
    total_revenue: Money
    average_order_value: Money
    total_line_items: int
    by_status: Dict[str, int]
    daily_trend: List[DailyTrendPoint]
