# lessonbook/services/catalog_service.py
"""
Catalog Service

Read side of the lesson catalog: filtered, sorted and paginated listing,
single-lesson lookup, administrative field updates, and the aggregate
statistics shown on the overview screen.

Every lesson leaving this service is enriched the same way: capacity is
normalized across the current and legacy column names, ``available`` is
derived from it, and ``imageUrl`` falls back to the configured placeholder.
"""

from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundException, ValidationException
from ..models.lesson import Lesson
from ..repositories.lesson_repository import LessonFilters, LessonRepository
from ..schemas.base import round_money
from ..schemas.base_responses import PaginationMeta
from ..schemas.lesson import (
    LessonListData,
    LessonQueryParams,
    LessonResponse,
    LessonStats,
    TopicBreakdown,
)
from .base import BaseService

logger = logging.getLogger(__name__)


def build_image_url(image: Optional[str]) -> str:
    """Public path for a stored image reference, or the placeholder when there is none."""
    name = (image or "").strip() or settings.default_lesson_image
    if name.startswith(("http://", "https://", "/")):
        return name
    base = settings.image_base_path.rstrip("/")
    return f"{base}/{name}"


def percentage(part: int, whole: int) -> float:
    """``part / whole`` as a percentage rounded to 2 dp; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


class CatalogService(BaseService):
    """Service layer for the lesson catalog."""

    def __init__(self, db: Session, lesson_repository: Optional[LessonRepository] = None):
        super().__init__(db)
        self.lesson_repository = lesson_repository or LessonRepository(db)

    def to_response(self, lesson: Lesson) -> LessonResponse:
        """Enrich a lesson row for output; the row itself is left untouched."""
        capacity = self.lesson_repository.normalize_capacity(lesson)
        return LessonResponse(
            id=lesson.id,
            topic=lesson.topic,
            location=lesson.location,
            price=lesson.price if lesson.price is not None else Decimal("0"),
            spaces=capacity,
            space=capacity,
            available=capacity > 0,
            description=lesson.description,
            image=lesson.image,
            image_url=build_image_url(lesson.image),
        )

    @BaseService.measure_operation("list_lessons")
    def list_lessons(self, params: LessonQueryParams) -> LessonListData:
        filters = LessonFilters(
            topic=params.topic,
            location=params.location,
            min_price=params.min_price,
            max_price=params.max_price,
            min_spaces=params.min_spaces,
            search=params.search,
        )

        total = self.lesson_repository.count(filters)
        lessons: List[Lesson] = []
        # Pages past the end still report the real total.
        if params.skip < total:
            lessons = self.lesson_repository.find(
                filters,
                sort_by=params.sort_by,
                descending=params.descending,
                skip=params.skip,
                limit=params.limit,
            )

        return LessonListData(
            lessons=[self.to_response(lesson) for lesson in lessons],
            pagination=PaginationMeta.build(total=total, page=params.page, limit=params.limit),
        )

    @BaseService.measure_operation("get_lesson")
    def get_lesson(self, lesson_id: str) -> LessonResponse:
        lesson = self.lesson_repository.find_by_id(lesson_id)
        if lesson is None:
            raise NotFoundException(f"Lesson not found: {lesson_id}", code="LESSON_NOT_FOUND")
        return self.to_response(lesson)

    @BaseService.measure_operation("update_lesson")
    def update_lesson(self, lesson_id: str, fields: Dict[str, Any]) -> LessonResponse:
        """
        Apply an administrative field update.

        Raises:
            ValidationException: No fields were supplied
            NotFoundException: Lesson does not exist
        """
        if not fields:
            raise ValidationException("No update data provided", code="EMPTY_UPDATE")

        with self.transaction():
            lesson = self.lesson_repository.apply_field_update(lesson_id, fields)
            if lesson is None:
                raise NotFoundException(f"Lesson not found: {lesson_id}", code="LESSON_NOT_FOUND")

        self.log_operation("update_lesson", lesson_id=lesson_id, fields=sorted(fields))
        return self.to_response(lesson)

    @BaseService.measure_operation("get_lesson_stats")
    def get_stats(self) -> LessonStats:
        totals = self.lesson_repository.stats()
        breakdown = self.lesson_repository.topic_breakdown()

        total_lessons = totals["total_lessons"]
        available = totals["available_lessons"]
        return LessonStats(
            total_lessons=total_lessons,
            total_spaces=totals["total_spaces"],
            average_price=round_money(totals["average_price"]),
            min_price=round_money(totals["min_price"]),
            max_price=round_money(totals["max_price"]),
            available_lessons=available,
            percentage_available=percentage(available, total_lessons),
            by_topic=[
                TopicBreakdown(
                    topic=row["topic"],
                    count=row["count"],
                    total_spaces=row["total_spaces"],
                    average_price=round_money(row["average_price"]),
                )
                for row in breakdown
            ],
        )
