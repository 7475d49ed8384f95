#!/usr/bin/env python3
"""
Seed the lesson catalog from YAML.

Usage:
    # Standalone:
    python scripts/seed_lessons.py

    # Against another database:
    DATABASE_URL=postgresql://... python scripts/seed_lessons.py

    # From another script or a test:
    from seed_lessons import load_lessons_yaml, seed_lessons
    seed_lessons(session, load_lessons_yaml())
"""

from pathlib import Path
import sys
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
import yaml

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lessonbook.database import SessionLocal, init_db  # noqa: E402
from lessonbook.models.lesson import Lesson  # noqa: E402
from lessonbook.repositories.lesson_repository import LessonRepository  # noqa: E402

SEED_FILE = Path(__file__).parent / "seed_data" / "lessons.yaml"


def load_lessons_yaml(path: Optional[Path] = None) -> List[Dict[str, Any]]:
    """Load lesson definitions from YAML."""
    with open(path or SEED_FILE, "r") as f:
        data = yaml.safe_load(f) or {}
    return list(data.get("lessons", []))


def seed_lessons(db: Session, lessons: List[Dict[str, Any]], verbose: bool = False) -> Dict[str, int]:
    """
    Insert or update lessons, matched on topic + location.

    Returns:
        {'created': int, 'updated': int}
    """
    repository = LessonRepository(db)
    stats = {"created": 0, "updated": 0}

    for entry in lessons:
        fields = dict(entry)
        existing = (
            db.query(Lesson)
            .filter(Lesson.topic == fields["topic"], Lesson.location == fields["location"])
            .first()
        )
        if existing is None:
            repository.create(**fields)
            stats["created"] += 1
            if verbose:
                print(f"  + {fields['topic']} @ {fields['location']}")
        else:
            repository.apply_field_update(existing.id, fields)
            stats["updated"] += 1
            if verbose:
                print(f"  ~ {fields['topic']} @ {fields['location']}")

    db.commit()
    return stats


def main() -> None:
    init_db()
    db = SessionLocal()
    try:
        stats = seed_lessons(db, load_lessons_yaml(), verbose=True)
    finally:
        db.close()
    print(f"Seeded lessons: {stats['created']} created, {stats['updated']} updated")


if __name__ == "__main__":
    main()
