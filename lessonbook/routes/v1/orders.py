# lessonbook/routes/v1/orders.py
"""
Order routes - API v1

Versioned order endpoints under /api/v1/orders.

Endpoints:
    POST /                 → Place an order (atomic capacity decrement)
    GET /                  → Filtered, sorted, paginated order list
    GET /stats/overview    → Order statistics
    GET /{order_id}        → Single order with confirmation code
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies.services import get_order_service
from ...core.exceptions import ValidationException
from ...core.ulid_helper import is_valid_ulid
from ...schemas.base_responses import ApiResponse
from ...schemas.order import (
    OrderCreate,
    OrderListData,
    OrderQueryParams,
    OrderResponse,
    OrderStats,
)
from ...services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["orders-v1"])


def order_query_params(
    status_filter: Optional[str] = Query(None, alias="status"),
    payment_status: Optional[str] = Query(None, alias="paymentStatus"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
) -> OrderQueryParams:
    raw = {
        "status": status_filter,
        "paymentStatus": payment_status,
        "sortBy": sort_by,
        "order": order,
        "page": page,
        "limit": limit,
    }
    return OrderQueryParams.model_validate({k: v for k, v in raw.items() if v is not None})


@router.post(
    "",
    response_model=ApiResponse[OrderResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    order_data: OrderCreate,
    order_service: OrderService = Depends(get_order_service),
) -> ApiResponse[OrderResponse]:
    """
    Place an order.

    Every line item's capacity is checked and decremented in one transaction
    together with the order insert: the order either fully succeeds or has
    no effect.
    """
    data = await asyncio.to_thread(order_service.place_order, order_data)
    return ApiResponse(data=data, message="Order created successfully")


@router.get(
    "",
    response_model=ApiResponse[OrderListData],
    response_model_exclude_none=True,
)
async def list_orders(
    params: OrderQueryParams = Depends(order_query_params),
    order_service: OrderService = Depends(get_order_service),
) -> ApiResponse[OrderListData]:
    data = await asyncio.to_thread(order_service.list_orders, params)
    return ApiResponse(data=data)


@router.get(
    "/stats/overview",
    response_model=ApiResponse[OrderStats],
    response_model_exclude_none=True,
)
async def order_stats(
    order_service: OrderService = Depends(get_order_service),
) -> ApiResponse[OrderStats]:
    data = await asyncio.to_thread(order_service.get_stats)
    return ApiResponse(data=data)


@router.get(
    "/{order_id}",
    response_model=ApiResponse[OrderResponse],
    response_model_exclude_none=True,
)
async def get_order(
    order_id: str,
    order_service: OrderService = Depends(get_order_service),
) -> ApiResponse[OrderResponse]:
    if not is_valid_ulid(order_id):
        raise ValidationException("Invalid order ID", code="INVALID_ID")
    data = await asyncio.to_thread(order_service.get_order, order_id)
    return ApiResponse(data=data)
