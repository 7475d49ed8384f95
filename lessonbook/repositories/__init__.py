# lessonbook/repositories/__init__.py
"""
Repository layer for data access, separating business logic from queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- IRepository: Interface defining required methods for all repositories
- LessonRepository: Catalog reads, aggregates and the atomic capacity decrement
- OrderRepository: Order inserts, listings and order statistics

Usage:
    from lessonbook.repositories import LessonRepository

    repo = LessonRepository(db)
    if not repo.try_decrement(lesson_id, 2):
        ...
"""

from .base_repository import BaseRepository, IRepository
from .lesson_repository import LessonFilters, LessonRepository
from .order_repository import OrderRepository

__all__ = [
    "BaseRepository",
    "IRepository",
    "LessonFilters",
    "LessonRepository",
    "OrderRepository",
]
