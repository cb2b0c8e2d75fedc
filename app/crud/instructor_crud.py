from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.catalog.instructor_model import Instructor
from app.schemas.catalog.instructor_schema import InstructorCreate


def get_instructors(db: Session) -> List[Instructor]:
    return db.query(Instructor).order_by(Instructor.id.asc()).all()


def get_instructor(db: Session, instructor_id: int) -> Optional[Instructor]:
    return db.get(Instructor, instructor_id)


def get_instructor_names(db: Session, instructor_ids: set[int]) -> dict[int, str]:
    """Map instructor ids to names in one query; unknown ids are simply absent."""
    if not instructor_ids:
        return {}
    rows = db.query(Instructor.id, Instructor.name).filter(Instructor.id.in_(instructor_ids)).all()
    return {row.id: row.name for row in rows}


def create_instructor(db: Session, instructor: InstructorCreate) -> Instructor:
    db_instructor = Instructor(**instructor.model_dump())
    db.add(db_instructor)
    db.commit()
    db.refresh(db_instructor)
    return db_instructor
