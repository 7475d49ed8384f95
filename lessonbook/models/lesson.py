# lessonbook/models/lesson.py
"""
Lesson model.

A lesson is a purchasable slot with a topic, location, price, and a live
capacity counter. ``spaces`` is the canonical counter; ``space`` is the
legacy column name some older rows were written with. Every write through
the repository keeps both columns equal, and reads resolve them through
``LessonRepository.normalize_capacity``.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Lesson(Base):
    """Catalog entry with a capacity counter mutated only by order placement and admin updates."""

    __tablename__ = "lessons"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    topic = Column(String(255), nullable=False, index=True)
    location = Column(String(255), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)

    # Capacity: canonical + legacy mirror
    spaces = Column(Integer, nullable=True)
    space = Column(Integer, nullable=True)

    description = Column(Text, nullable=True)
    image = Column(String(512), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_lessons_price_non_negative"),
        CheckConstraint("spaces IS NULL OR spaces >= 0", name="ck_lessons_spaces_non_negative"),
        CheckConstraint("space IS NULL OR space >= 0", name="ck_lessons_space_non_negative"),
    )

    @property
    def capacity(self) -> int:
        """Current capacity: ``spaces`` if set, else the legacy ``space``, else 0."""
        if self.spaces is not None:
            return int(self.spaces)
        if self.space is not None:
            return int(self.space)
        return 0

    def __repr__(self) -> str:
        return f"<Lesson {self.id} topic={self.topic!r} spaces={self.spaces}>"
