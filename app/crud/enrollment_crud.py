from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError
from app.models.progress.breakdown_watch_model import BreakdownWatch
from app.models.progress.enrollment_model import Enrollment


def get_enrollment(db: Session, user_id: int, course_id: int) -> Optional[Enrollment]:
    return (
        db.query(Enrollment)
        .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
        .first()
    )


def get_user_enrollments(db: Session, user_id: int) -> List[Enrollment]:
    return (
        db.query(Enrollment)
        .filter(Enrollment.user_id == user_id)
        .order_by(Enrollment.id.asc())
        .all()
    )


def create_enrollment(db: Session, user_id: int, course_id: int) -> Enrollment:
    if get_enrollment(db, user_id, course_id):
        raise ConflictError("Already enrolled")

    enrollment = Enrollment(user_id=user_id, course_id=course_id, completed_sections=[])
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Already enrolled") from exc
    db.refresh(enrollment)
    return enrollment


# --- Breakdown watches ---

def get_breakdown_watch(db: Session, user_id: int, breakdown_id: int) -> Optional[BreakdownWatch]:
    return (
        db.query(BreakdownWatch)
        .filter(BreakdownWatch.user_id == user_id, BreakdownWatch.breakdown_id == breakdown_id)
        .first()
    )


def get_or_create_breakdown_watch(db: Session, user_id: int, breakdown_id: int) -> BreakdownWatch:
    existing = get_breakdown_watch(db, user_id, breakdown_id)
    if existing:
        return existing

    watch = BreakdownWatch(user_id=user_id, breakdown_id=breakdown_id)
    db.add(watch)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return get_breakdown_watch(db, user_id, breakdown_id)
    db.refresh(watch)
    return watch


def delete_breakdown_watch(db: Session, user_id: int, breakdown_id: int) -> bool:
    existing = get_breakdown_watch(db, user_id, breakdown_id)
    if not existing:
        return False
    db.delete(existing)
    db.commit()
    return True


def get_user_watched_breakdown_ids(db: Session, user_id: int) -> List[int]:
    rows = (
        db.query(BreakdownWatch.breakdown_id)
        .filter(BreakdownWatch.user_id == user_id)
        .order_by(BreakdownWatch.id.asc())
        .all()
    )
    return [row.breakdown_id for row in rows]
