# lessonbook/models/order.py
"""
Order models.

Orders are self-contained records: each line item snapshots the lesson's
topic, location and price at the moment the order was placed, so later
catalog edits never rewrite purchase history. Orders are create-only.
"""

from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class OrderStatus(str, Enum):
    """Order lifecycle statuses."""

    CONFIRMED = "confirmed"  # Default - orders are confirmed on placement
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment lifecycle, tracked separately from the order status."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    name = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=False)

    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=OrderStatus.CONFIRMED.value, index=True)
    payment_status = Column(
        String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True
    )

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy="selectin",
    )

    __table_args__ = (CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),)

    @property
    def confirmation_code(self) -> str:
        """Human-friendly code: the last 8 characters of the id, uppercased."""
        return str(self.id)[-8:].upper()

    def __repr__(self) -> str:
        return f"<Order {self.id} total={self.total_amount} status={self.status}>"


class OrderItem(Base):
    """Line item with a captured snapshot of the lesson at purchase time."""

    __tablename__ = "order_items"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    order_id = Column(String(26), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    lesson_id = Column(String(26), ForeignKey("lessons.id"), nullable=False, index=True)

    # Snapshot (preserved for history)
    topic = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        Index("ix_order_items_order_position", "order_id", "position"),
    )
