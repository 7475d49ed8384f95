from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from lessonbook.models import Order
from lessonbook.repositories.order_repository import OrderRepository, utc_day

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def insert_order(db: Session, make_lesson):
    lesson = make_lesson(topic="Math", location="Hendon", price=10, spaces=100)
    repo = OrderRepository(db)

    def _insert(name="Ada", total="10", quantity=1, status="confirmed", payment_status="pending", created_at=NOW):
        order = repo.insert(
            {
                "name": name,
                "phone": "0123",
                "total_amount": Decimal(total),
                "status": status,
                "payment_status": payment_status,
                "created_at": created_at,
                "updated_at": created_at,
            },
            [
                {
                    "lesson_id": lesson.id,
                    "topic": lesson.topic,
                    "location": lesson.location,
                    "price": Decimal("10"),
                    "quantity": quantity,
                    "amount": Decimal(total),
                }
            ],
        )
        db.commit()
        return order

    return _insert


class TestInsertAndFind:
    def test_insert_assigns_id_and_snapshots(self, db: Session, insert_order) -> None:
        order = insert_order(total="30", quantity=3)

        found = OrderRepository(db).find_by_id(order.id)
        assert found is not None
        assert len(found.id) == 26
        assert found.items[0].topic == "Math"
        assert found.items[0].quantity == 3
        assert found.items[0].amount == Decimal("30")

    def test_filters_and_count(self, db: Session, insert_order) -> None:
        insert_order(name="Ada")
        insert_order(name="Bob", status="cancelled")
        insert_order(name="Cy", payment_status="paid")
        repo = OrderRepository(db)

        assert repo.count() == 3
        assert repo.count(status="cancelled") == 1
        assert [o.name for o in repo.find(payment_status="paid")] == ["Cy"]

    def test_sorting(self, db: Session, insert_order) -> None:
        insert_order(name="Bob", total="50", created_at=NOW - timedelta(hours=2))
        insert_order(name="Ada", total="20", created_at=NOW - timedelta(hours=1))
        insert_order(name="Cy", total="30", created_at=NOW)
        repo = OrderRepository(db)

        assert [o.name for o in repo.find()] == ["Cy", "Ada", "Bob"]
        assert [o.name for o in repo.find(sort_by="name", descending=False)] == ["Ada", "Bob", "Cy"]
        assert [o.name for o in repo.find(sort_by="totalAmount")] == ["Bob", "Cy", "Ada"]

    def test_unsupported_sort_field(self, db: Session) -> None:
        with pytest.raises(ValueError):
            OrderRepository(db).find(sort_by="phone")


class TestAggregates:
    def test_summary_on_empty_store(self, db: Session) -> None:
        summary = OrderRepository(db).summary()
        assert summary["total_orders"] == 0
        assert summary["total_revenue"] == Decimal("0")
        assert summary["average_order_value"] == Decimal("0")
        assert summary["total_line_items"] == 0

    def test_summary_and_status_breakdown(self, db: Session, insert_order) -> None:
        insert_order(total="10")
        insert_order(total="30", status="completed")
        repo = OrderRepository(db)

        summary = repo.summary()
        assert summary["total_orders"] == 2
        assert summary["total_revenue"] == Decimal("40")
        assert summary["average_order_value"] == Decimal("20")
        assert summary["total_line_items"] == 2
        assert repo.status_breakdown() == {"confirmed": 1, "completed": 1}

    def test_daily_trend_is_zero_filled_oldest_first(self, db: Session, insert_order) -> None:
        insert_order(total="10", created_at=NOW)
        insert_order(total="15", created_at=NOW - timedelta(hours=1))
        insert_order(total="5", created_at=NOW - timedelta(days=2))
        insert_order(total="99", created_at=NOW - timedelta(days=30))

        trend = OrderRepository(db).daily_trend(days=7, now=NOW)

        assert len(trend) == 7
        assert trend[0]["date"] == "2026-10-10"
        assert trend[-1] == {"date": "2026-10-16", "count": 2, "revenue": Decimal("25")}
        assert trend[-3]["count"] == 1
        assert sum(point["count"] for point in trend) == 3


class TestUtcDay:
    def test_postgresql_converts_to_utc_before_truncating(self) -> None:
        sql = str(utc_day(Order.created_at, "postgresql").compile(dialect=postgresql.dialect()))
        assert sql.startswith("date(timezone(")
        assert "orders.created_at" in sql

    def test_sqlite_uses_stored_utc_timestamp(self) -> None:
        sql = str(utc_day(Order.created_at, "sqlite").compile(dialect=sqlite.dialect()))
        assert sql == "date(orders.created_at)"
