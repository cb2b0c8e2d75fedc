"""Load catalog content prepared offline as JSON documents.

Video files are uploaded to the video platform beforehand; documents only
carry the resulting playback ids.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.crud import breakdown_crud, course_crud, instructor_crud
from app.models.catalog.breakdown_model import Breakdown
from app.models.catalog.course_model import Course
from app.models.catalog.instructor_model import Instructor
from app.schemas.catalog.breakdown_schema import BreakdownCreate
from app.schemas.catalog.course_schema import CourseCreate
from app.schemas.catalog.instructor_schema import InstructorCreate

logger = logging.getLogger(__name__)

Document = Union[Dict[str, Any], str, Path]


def _read(document: Document) -> Dict[str, Any]:
    if isinstance(document, dict):
        return document
    with open(document, encoding="utf-8") as handle:
        return json.load(handle)


def load_instructor(db: Session, document: Document) -> Instructor:
    payload = InstructorCreate.model_validate(_read(document))
    instructor = instructor_crud.create_instructor(db, payload)
    logger.info("Instructor %s created: %s", instructor.id, instructor.name)
    return instructor


def _require_instructor(db: Session, instructor_id: int) -> None:
    if instructor_crud.get_instructor(db, instructor_id) is None:
        raise NotFoundError(f"Instructor {instructor_id} not found")


def load_course(db: Session, document: Document) -> Course:
    """Validate and insert a course; its instructor must already exist."""
    payload = CourseCreate.model_validate(_read(document))
    _require_instructor(db, payload.instructor_id)
    course = course_crud.create_course(db, payload)
    logger.info(
        "Course %s created: %s (%d sections)", course.id, course.title, course.total_sections
    )
    return course


def load_breakdown(db: Session, document: Document) -> Breakdown:
    payload = BreakdownCreate.model_validate(_read(document))
    _require_instructor(db, payload.instructor_id)
    breakdown = breakdown_crud.create_breakdown(db, payload)
    logger.info("Breakdown %s created: %s", breakdown.id, breakdown.title)
    return breakdown
