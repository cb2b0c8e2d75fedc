"""Who may watch what.

Access is derived from purchase and subscription rows only; nothing here
writes to the database, so these checks can run as often as callers like.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.crud import breakdown_crud, course_crud, purchase_crud
from app.models.user.user_model import User

logger = logging.getLogger(__name__)


def has_access_to_course(db: Session, user: Optional[User], course_id: int) -> bool:
    """Free courses are open to any signed-in user; paid ones need a purchase
    or an active subscription to the course's instructor."""
    if user is None:
        return False

    course = course_crud.get_course(db, course_id)
    if course is None:
        return False

    if course.is_free:
        return True

    if purchase_crud.get_purchase(db, user.id, course.id) is not None:
        return True

    return purchase_crud.has_active_subscription(db, user.id, course.instructor_id)


def has_access_to_breakdown(db: Session, user: Optional[User], breakdown_id: int) -> bool:
    """Breakdowns carry no price and cannot be bought: only a subscription opens them."""
    if user is None:
        return False

    breakdown = breakdown_crud.get_breakdown(db, breakdown_id)
    if breakdown is None:
        return False

    return purchase_crud.has_active_subscription(db, user.id, breakdown.instructor_id)
