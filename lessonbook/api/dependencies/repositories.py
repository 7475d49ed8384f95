# lessonbook/api/dependencies/repositories.py
"""
Repository dependencies for routes that read without a service.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...repositories.lesson_repository import LessonRepository
from ...repositories.order_repository import OrderRepository
from .database import get_db


def get_lesson_repository(db: Session = Depends(get_db)) -> LessonRepository:
    return LessonRepository(db)


def get_order_repository(db: Session = Depends(get_db)) -> OrderRepository:
    return OrderRepository(db)
