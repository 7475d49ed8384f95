# lessonbook/services/order_service.py
"""
Order Service

Owns order placement: a single transaction that, for every requested line
item, reads the lesson, checks and atomically decrements its capacity, and
finally inserts the order with price snapshots. Either every decrement and
the order insert commit together, or none of them do.

Transient store conflicts (deadlocks, serialization failures, a locked
SQLite file) re-run the whole transaction a bounded number of times.
"""

from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import InsufficientCapacityException, NotFoundException
from ..database import with_db_retry
from ..models.order import Order, OrderStatus, PaymentStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.lesson_repository import LessonRepository
from ..repositories.order_repository import OrderRepository
from ..schemas.base import round_money
from ..schemas.base_responses import PaginationMeta
from ..schemas.order import (
    DailyTrendPoint,
    OrderCreate,
    OrderListData,
    OrderQueryParams,
    OrderResponse,
    OrderStats,
)
from .base import BaseService

logger = logging.getLogger(__name__)

TREND_DAYS = 7


class OrderService(BaseService):
    """Service layer for order placement and order queries."""

    def __init__(
        self,
        db: Session,
        lesson_repository: Optional[LessonRepository] = None,
        order_repository: Optional[OrderRepository] = None,
    ):
        super().__init__(db)
        self.lesson_repository = lesson_repository or LessonRepository(db)
        self.order_repository = order_repository or OrderRepository(db)

    @BaseService.measure_operation("place_order")
    def place_order(self, order_data: OrderCreate) -> OrderResponse:
        """
        Place an order atomically.

        Raises:
            NotFoundException: A requested lesson does not exist
            InsufficientCapacityException: A lesson has fewer spaces than requested
            ServiceException: The store failed and retries were exhausted
        """
        try:
            order = with_db_retry(
                "place_order",
                lambda: self._place_order_once(order_data),
                max_attempts=settings.order_transaction_max_attempts,
            )
        except NotFoundException:
            prometheus_metrics.record_order_failure("not_found")
            raise
        except InsufficientCapacityException:
            prometheus_metrics.record_order_failure("insufficient_capacity")
            raise
        except Exception:
            prometheus_metrics.record_order_failure("store_error")
            raise

        prometheus_metrics.record_order_placed()
        self.log_operation(
            "place_order",
            order_id=order.id,
            total_amount=str(order.total_amount),
            line_items=len(order.items),
        )
        return OrderResponse.model_validate(order)

    def _place_order_once(self, order_data: OrderCreate) -> Order:
        """One attempt at the full transaction; safe to re-run after a rollback."""
        with self.transaction():
            self._apply_statement_timeout()

            total = Decimal("0")
            snapshots: List[Dict[str, Any]] = []

            for item in order_data.lessons:
                lesson = self.lesson_repository.find_by_id(item.lesson_id)
                if lesson is None:
                    raise NotFoundException(
                        f"Lesson not found: {item.lesson_id}", code="LESSON_NOT_FOUND"
                    )

                available = self.lesson_repository.normalize_capacity(lesson)
                if available < item.quantity:
                    raise InsufficientCapacityException(
                        lesson_id=lesson.id,
                        topic=lesson.topic,
                        available=available,
                        requested=item.quantity,
                    )

                if not self.lesson_repository.try_decrement(lesson.id, item.quantity):
                    # Another order took the spaces between our read and the update.
                    refreshed = self.lesson_repository.find_by_id(lesson.id)
                    raise InsufficientCapacityException(
                        lesson_id=lesson.id,
                        topic=lesson.topic,
                        available=refreshed.capacity if refreshed is not None else 0,
                        requested=item.quantity,
                    )

                price = Decimal(str(lesson.price))
                amount = price * item.quantity
                snapshots.append(
                    {
                        "lesson_id": lesson.id,
                        "topic": lesson.topic,
                        "location": lesson.location,
                        "price": price,
                        "quantity": item.quantity,
                        "amount": amount,
                    }
                )
                total += amount

            now = datetime.now(timezone.utc)
            return self.order_repository.insert(
                {
                    "name": order_data.name,
                    "phone": order_data.phone,
                    "total_amount": total,
                    "status": OrderStatus.CONFIRMED.value,
                    "payment_status": PaymentStatus.PENDING.value,
                    "created_at": now,
                    "updated_at": now,
                },
                snapshots,
            )

    def _apply_statement_timeout(self) -> None:
        if self.dialect_name != "postgresql":
            return
        timeout_ms = int(settings.order_transaction_timeout_ms)
        self.db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))

    @BaseService.measure_operation("get_order")
    def get_order(self, order_id: str) -> OrderResponse:
        order = self.order_repository.find_by_id(order_id)
        if order is None:
            raise NotFoundException(f"Order not found: {order_id}", code="ORDER_NOT_FOUND")
        return OrderResponse.model_validate(order)

    @BaseService.measure_operation("list_orders")
    def list_orders(self, params: OrderQueryParams) -> OrderListData:
        status = params.status.value if params.status else None
        payment_status = params.payment_status.value if params.payment_status else None

        total = self.order_repository.count(status=status, payment_status=payment_status)
        orders: List[Order] = []
        if params.skip < total:
            orders = self.order_repository.find(
                status=status,
                payment_status=payment_status,
                sort_by=params.sort_by,
                descending=params.descending,
                skip=params.skip,
                limit=params.limit,
            )

        return OrderListData(
            orders=[OrderResponse.model_validate(order) for order in orders],
            pagination=PaginationMeta.build(total=total, page=params.page, limit=params.limit),
        )

    @BaseService.measure_operation("get_order_stats")
    def get_stats(self, now: Optional[datetime] = None) -> OrderStats:
        summary = self.order_repository.summary()
        return OrderStats(
            total_orders=summary["total_orders"],
            total_revenue=round_money(summary["total_revenue"]),
            average_order_value=round_money(summary["average_order_value"]),
            total_line_items=summary["total_line_items"],
            by_status=self.order_repository.status_breakdown(),
            daily_trend=[
                DailyTrendPoint(
                    date=point["date"],
                    count=point["count"],
                    revenue=round_money(point["revenue"]),
                )
                for point in self.order_repository.daily_trend(days=TREND_DAYS, now=now)
            ],
        )

