# lessonbook/repositories/order_repository.py
"""
Order Repository

Typed accessor over ``orders`` and their line items: insert, filtered and
paginated reads, and the aggregates behind the order statistics endpoint.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import ColumnElement

from ..core.exceptions import RepositoryException
from ..database import get_dialect_name
from ..models.order import Order, OrderItem
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "createdAt": Order.created_at,
    "totalAmount": Order.total_amount,
    "name": Order.name,
}


def utc_day(column: Any, dialect_name: str) -> ColumnElement[Any]:
    """Calendar day (UTC) of a timestamp column, as a SQL expression."""
    if dialect_name == "postgresql":
        # DATE(timestamptz) would use the session time zone.
        return func.date(func.timezone("UTC", column))
    return func.date(column)


class OrderRepository(BaseRepository[Order]):
    """Repository for order data access."""

    def __init__(self, db: Session):
        super().__init__(db, Order)

    def insert(self, order_fields: Dict[str, Any], items: Sequence[Dict[str, Any]]) -> Order:
        """
        Insert an order together with its line-item snapshots.

        Flushes so the id is assigned; the caller owns the commit.
        """
        try:
            order = Order(**order_fields)
            order.items = [
                OrderItem(position=position, **item) for position, item in enumerate(items)
            ]
            self.db.add(order)
            self.db.flush()
            return order
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting order: {str(e)}")
            raise RepositoryException(f"Failed to create order: {str(e)}") from e

    def find_by_id(self, order_id: str) -> Optional[Order]:
        return self.get_by_id(order_id)

    def find(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        sort_by: str = "createdAt",
        descending: bool = True,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Order]:
        column = SORTABLE_FIELDS.get(sort_by)
        if column is None:
            raise ValueError(f"Unsupported sort field: {sort_by}")
        primary = column.desc() if descending else column.asc()
        query = (
            self._apply_filters(self._build_query(), status, payment_status)
            .order_by(primary, Order.id.asc())
            .offset(skip)
            .limit(limit)
        )
        return self._execute_query(query)

    def count(self, status: Optional[str] = None, payment_status: Optional[str] = None) -> int:
        query = self._apply_filters(self.db.query(func.count(Order.id)), status, payment_status)
        return int(self._execute_scalar(query) or 0)

    # Aggregates

    def summary(self) -> Dict[str, Any]:
        """Total orders, revenue, average order value and line-item count."""
        try:
            total_orders, revenue, average = self.db.query(
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount), 0),
                func.avg(Order.total_amount),
            ).one()
            line_items = self.db.query(func.count(OrderItem.id)).scalar()
        except SQLAlchemyError as e:
            self.logger.error(f"Error computing order summary: {str(e)}")
            raise RepositoryException(f"Failed to compute order summary: {str(e)}") from e

        return {
            "total_orders": int(total_orders or 0),
            "total_revenue": Decimal(str(revenue or 0)),
            "average_order_value": Decimal(str(average)) if average is not None else Decimal("0"),
            "total_line_items": int(line_items or 0),
        }

    def status_breakdown(self) -> Dict[str, int]:
        query = self.db.query(Order.status, func.count(Order.id)).group_by(Order.status)
        return {status: int(count) for status, count in self._execute_query(query)}

    def daily_trend(self, days: int = 7, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """
        Order count and revenue per calendar day (UTC) for the last ``days`` days.

        Days without orders are included with zero values, oldest first.
        """
        current = now or datetime.now(timezone.utc)
        first_day = (current - timedelta(days=days - 1)).date()
        start = datetime.combine(first_day, datetime.min.time(), tzinfo=timezone.utc)

        day = utc_day(Order.created_at, get_dialect_name(self.db))
        query = (
            self.db.query(
                day,
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount), 0),
            )
            .filter(Order.created_at >= start)
            .group_by(day)
        )
        rows = self._execute_query(query)
        by_day = {str(key)[:10]: (int(count), Decimal(str(revenue or 0))) for key, count, revenue in rows}

        trend = []
        for offset in range(days):
            key = (first_day + timedelta(days=offset)).isoformat()
            count, revenue = by_day.get(key, (0, Decimal("0")))
            trend.append({"date": key, "count": count, "revenue": revenue})
        return trend

    # Helpers

    def _apply_filters(
        self, query: Query, status: Optional[str], payment_status: Optional[str]
    ) -> Query:
        if status:
            query = query.filter(Order.status == status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)
        return query
