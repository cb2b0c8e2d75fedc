# Fichier: fightmeta/backend/app/crud/course_crud.py
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.catalog.course_model import Course
from app.schemas.catalog.course_schema import CourseCreate


def get_course(db: Session, course_id: int) -> Optional[Course]:
    return db.get(Course, course_id)


def get_latest_courses(db: Session, limit: int) -> List[Course]:
    """Newest first, ties on the creation timestamp broken by id."""
    return (
        db.query(Course)
        .order_by(Course.created_at.desc(), Course.id.desc())
        .limit(limit)
        .all()
    )


def get_all_courses(db: Session) -> List[Course]:
    return db.query(Course).order_by(Course.id.asc()).all()


def get_free_courses(db: Session) -> List[Course]:
    # A missing price and a zero price both mean free.
    return (
        db.query(Course)
        .filter(or_(Course.price.is_(None), Course.price == 0))
        .order_by(Course.id.asc())
        .all()
    )


def get_courses_by_instructor(db: Session, instructor_id: int) -> List[Course]:
    return (
        db.query(Course)
        .filter(Course.instructor_id == instructor_id)
        .order_by(Course.id.asc())
        .all()
    )


def create_course(db: Session, course: CourseCreate) -> Course:
    db_course = Course(**course.model_dump())
    db.add(db_course)
    db.commit()
    db.refresh(db_course)
    return db_course
