"""Read-side joins for the catalog.

Courses and breakdowns only store their instructor's id; the display name is
looked up at read time so renaming an instructor never leaves stale copies.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.crud import instructor_crud
from app.models.catalog.breakdown_model import Breakdown
from app.models.catalog.course_model import Course
from app.schemas.catalog.breakdown_schema import BreakdownOut
from app.schemas.catalog.course_schema import UNKNOWN_TEACHER, CourseOut


def _teacher_names(db: Session, items: Iterable[Course | Breakdown]) -> dict[int, str]:
    return instructor_crud.get_instructor_names(db, {item.instructor_id for item in items})


def course_out(course: Course, teacher: Optional[str]) -> CourseOut:
    return CourseOut.model_validate(course).model_copy(update={"teacher": teacher or UNKNOWN_TEACHER})


def breakdown_out(breakdown: Breakdown, teacher: Optional[str]) -> BreakdownOut:
    return BreakdownOut.model_validate(breakdown).model_copy(
        update={"teacher": teacher or UNKNOWN_TEACHER}
    )


def with_teachers(db: Session, courses: List[Course]) -> List[CourseOut]:
    names = _teacher_names(db, courses)
    return [course_out(course, names.get(course.instructor_id)) for course in courses]


def breakdowns_with_teachers(db: Session, breakdowns: List[Breakdown]) -> List[BreakdownOut]:
    names = _teacher_names(db, breakdowns)
    return [breakdown_out(item, names.get(item.instructor_id)) for item in breakdowns]
