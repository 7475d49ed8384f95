from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from lessonbook.models import Lesson

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "seed_lessons.py"


@pytest.fixture(scope="module")
def seed_module():
    module_spec = importlib.util.spec_from_file_location("seed_lessons", SCRIPT)
    assert module_spec and module_spec.loader
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def test_seed_file_loads(seed_module) -> None:
    lessons = seed_module.load_lessons_yaml()
    assert len(lessons) >= 10
    assert all({"topic", "location", "price"} <= set(entry) for entry in lessons)


def test_seed_is_idempotent(seed_module, db: Session) -> None:
    lessons = seed_module.load_lessons_yaml()

    first = seed_module.seed_lessons(db, lessons)
    second = seed_module.seed_lessons(db, lessons)

    assert first == {"created": len(lessons), "updated": 0}
    assert second == {"created": 0, "updated": len(lessons)}
    assert db.query(Lesson).count() == len(lessons)
    # Legacy-only entries are stored under both names
    assert all(lesson.spaces == lesson.space for lesson in db.query(Lesson).all())
