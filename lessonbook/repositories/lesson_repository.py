# lessonbook/repositories/lesson_repository.py
"""
Lesson Repository

Typed accessor over the ``lessons`` table: filtered/sorted/paginated reads,
aggregate statistics, and the atomic conditional capacity decrement used
by order placement.

The legacy ``space`` column is resolved here and nowhere else: reads go
through ``normalize_capacity`` and every write sets ``spaces`` and
``space`` to the same value.
"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, case, func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import ColumnElement

from ..core.exceptions import RepositoryException
from ..models.lesson import Lesson
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("topic", "location", "price", "spaces")
UPDATABLE_FIELDS = ("topic", "location", "price", "spaces", "description", "image")


@dataclass
class LessonFilters:
    """Listing filters; ``None`` means the filter is not applied."""

    topic: Optional[str] = None
    location: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_spaces: Optional[int] = None
    search: Optional[str] = None


def capacity_expr() -> ColumnElement[Any]:
    """SQL expression for the normalized capacity of a lesson row."""
    return func.coalesce(Lesson.spaces, Lesson.space, 0)


class LessonRepository(BaseRepository[Lesson]):
    """Repository for lesson catalog data access."""

    def __init__(self, db: Session):
        super().__init__(db, Lesson)

    @staticmethod
    def normalize_capacity(lesson: Lesson) -> int:
        """Capacity under the canonical name, falling back to the legacy column, else 0."""
        return lesson.capacity

    # Reads

    def find_by_id(self, lesson_id: str) -> Optional[Lesson]:
        try:
            return (
                self.db.query(Lesson)
                .filter(Lesson.id == lesson_id)
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting lesson {lesson_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve lesson: {str(e)}") from e

    def find(
        self,
        filters: Optional[LessonFilters] = None,
        sort_by: str = "topic",
        descending: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Lesson]:
        """Return one page of lessons matching ``filters``."""
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {sort_by}")

        sort_column: Any = capacity_expr() if sort_by == "spaces" else getattr(Lesson, sort_by)
        primary = sort_column.desc() if descending else sort_column.asc()

        query = (
            self._apply_filters(self._build_query(), filters)
            .order_by(primary, Lesson.id.asc())
            .offset(skip)
            .limit(limit)
        )
        return self._execute_query(query)

    def count(self, filters: Optional[LessonFilters] = None) -> int:
        query = self._apply_filters(self.db.query(func.count(Lesson.id)), filters)
        return int(self._execute_scalar(query) or 0)

    # Writes

    def create(self, **kwargs: Any) -> Lesson:
        """Create a lesson, mirroring capacity into both column names."""
        capacity = kwargs.pop("spaces", None)
        legacy = kwargs.pop("space", None)
        value = capacity if capacity is not None else legacy
        if value is not None:
            kwargs["spaces"] = value
            kwargs["space"] = value
        return super().create(**kwargs)

    def try_decrement(self, lesson_id: str, quantity: int) -> bool:
        """
        Atomically take ``quantity`` spaces from a lesson.

        The capacity check lives in the UPDATE's WHERE clause, so the check
        and the write are one statement: of two racing callers only one can
        observe enough capacity. Returns False, with no effect, when the
        lesson is missing or has fewer than ``quantity`` spaces left.
        """
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        cap = capacity_expr()
        stmt = (
            update(Lesson)
            .where(and_(Lesson.id == lesson_id, cap >= quantity))
            .values(spaces=cap - quantity, space=cap - quantity, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Error decrementing lesson {lesson_id} by {quantity}: {str(e)}")
            raise RepositoryException(f"Failed to decrement lesson capacity: {str(e)}") from e

        applied = result.rowcount == 1
        if applied:
            self._expire_cached(lesson_id)
        else:
            self.logger.info(
                "Conditional decrement rejected",
                extra={"lesson_id": lesson_id, "quantity": quantity},
            )
        return applied

    def apply_field_update(self, lesson_id: str, fields: Dict[str, Any]) -> Optional[Lesson]:
        """Set updatable fields on a lesson; ``None`` when the lesson does not exist."""
        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS or k == "space"}
        if "spaces" in changes or "space" in changes:
            value = changes.pop("spaces", None)
            legacy = changes.pop("space", None)
            value = value if value is not None else legacy
            changes["spaces"] = value
            changes["space"] = value
        return self.update(lesson_id, **changes)

    # Aggregates

    def stats(self) -> Dict[str, Any]:
        """Catalog-wide totals in a single aggregate query."""
        cap = capacity_expr()
        query = self.db.query(
            func.count(Lesson.id),
            func.coalesce(func.sum(cap), 0),
            func.avg(Lesson.price),
            func.min(Lesson.price),
            func.max(Lesson.price),
            func.coalesce(func.sum(case((cap > 0, 1), else_=0)), 0),
        )
        try:
            row = query.one()
        except SQLAlchemyError as e:
            self.logger.error(f"Error computing lesson stats: {str(e)}")
            raise RepositoryException(f"Failed to compute lesson stats: {str(e)}") from e

        total, total_spaces, avg_price, min_price, max_price, available = row
        return {
            "total_lessons": int(total or 0),
            "total_spaces": int(total_spaces or 0),
            "average_price": avg_price,
            "min_price": min_price,
            "max_price": max_price,
            "available_lessons": int(available or 0),
        }

    def topic_breakdown(self) -> List[Dict[str, Any]]:
        """Per-topic count, total capacity and average price, largest topics first."""
        cap = capacity_expr()
        lesson_count = func.count(Lesson.id)
        query = (
            self.db.query(
                Lesson.topic,
                lesson_count,
                func.coalesce(func.sum(cap), 0),
                func.avg(Lesson.price),
            )
            .group_by(Lesson.topic)
            .order_by(lesson_count.desc(), Lesson.topic.asc())
        )
        rows = self._execute_query(query)
        return [
            {
                "topic": topic,
                "count": int(count),
                "total_spaces": int(total_spaces or 0),
                "average_price": avg_price,
            }
            for topic, count, total_spaces, avg_price in rows
        ]

    # Helpers

    def _apply_filters(self, query: Query, filters: Optional[LessonFilters]) -> Query:
        if filters is None:
            return query

        if filters.topic:
            query = query.filter(Lesson.topic == filters.topic)
        if filters.location:
            query = query.filter(Lesson.location == filters.location)
        if filters.min_price is not None:
            query = query.filter(Lesson.price >= filters.min_price)
        if filters.max_price is not None:
            query = query.filter(Lesson.price <= filters.max_price)
        if filters.min_spaces is not None:
            # Rows written under either column name qualify.
            query = query.filter(capacity_expr() >= filters.min_spaces)
        if filters.search:
            needle = filters.search.strip().lower()
            if needle:
                query = query.filter(
                    or_(
                        func.lower(Lesson.topic).contains(needle, autoescape=True),
                        func.lower(Lesson.location).contains(needle, autoescape=True),
                        func.lower(Lesson.description).contains(needle, autoescape=True),
                    )
                )
        return query

    def _expire_cached(self, lesson_id: str) -> None:
        """Drop stale capacity values for a lesson already loaded in this session."""
        for obj in list(self.db.identity_map.values()):
            if isinstance(obj, Lesson) and obj.id == lesson_id:
                self.db.expire(obj, ["spaces", "space", "updated_at"])
