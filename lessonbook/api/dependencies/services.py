# lessonbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets fresh service instances bound to its own session; the
repositories are injected so tests can swap them.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...repositories.lesson_repository import LessonRepository
from ...repositories.order_repository import OrderRepository
from ...services.catalog_service import CatalogService
from ...services.order_service import OrderService
from .database import get_db
from .repositories import get_lesson_repository, get_order_repository


def get_catalog_service(
    db: Session = Depends(get_db),
    lesson_repository: LessonRepository = Depends(get_lesson_repository),
) -> CatalogService:
    """Get catalog service instance for dependency injection."""
    return CatalogService(db, lesson_repository=lesson_repository)


def get_order_service(
    db: Session = Depends(get_db),
    lesson_repository: LessonRepository = Depends(get_lesson_repository),
    order_repository: OrderRepository = Depends(get_order_repository),
) -> OrderService:
    """Get order service instance for dependency injection."""
    return OrderService(
        db,
        lesson_repository=lesson_repository,
        order_repository=order_repository,
    )
