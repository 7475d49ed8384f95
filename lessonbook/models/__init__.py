"""
Database models for the lesson booking API.

- Lesson: catalog entries with a live capacity counter
- Order / OrderItem: placed orders with per-item lesson snapshots
"""

from .lesson import Lesson
from .order import Order, OrderItem, OrderStatus, PaymentStatus

__all__ = [
    "Lesson",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
]
