from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.catalog.breakdown_model import Breakdown
from app.schemas.catalog.breakdown_schema import BreakdownCreate


def get_breakdown(db: Session, breakdown_id: int) -> Optional[Breakdown]:
    return db.get(Breakdown, breakdown_id)


def get_latest_breakdowns(db: Session, limit: int) -> List[Breakdown]:
    return (
        db.query(Breakdown)
        .order_by(Breakdown.created_at.desc(), Breakdown.id.desc())
        .limit(limit)
        .all()
    )


def get_all_breakdowns(db: Session) -> List[Breakdown]:
    return db.query(Breakdown).order_by(Breakdown.id.asc()).all()


def get_breakdowns_by_instructor(db: Session, instructor_id: int) -> List[Breakdown]:
    return (
        db.query(Breakdown)
        .filter(Breakdown.instructor_id == instructor_id)
        .order_by(Breakdown.id.asc())
        .all()
    )


def create_breakdown(db: Session, breakdown: BreakdownCreate) -> Breakdown:
    db_breakdown = Breakdown(**breakdown.model_dump())
    db.add(db_breakdown)
    db.commit()
    db.refresh(db_breakdown)
    return db_breakdown
