"""User-initiated purchases and subscriptions.

A user clicks once, so buying the same course twice is reported as a
conflict. Resubscribing reactivates the existing row instead.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_current_user, get_db, get_optional_user
from app.core.errors import PlatformError
from app.crud import course_crud, instructor_crud, purchase_crud
from app.models.user.user_model import User
from app.schemas.commerce import purchase_schema

logger = logging.getLogger(__name__)

purchases_router = APIRouter()
subscriptions_router = APIRouter()


@purchases_router.get("", response_model=List[purchase_schema.PurchaseOut])
def list_purchases(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user is None:
        return []
    return purchase_crud.get_user_purchases(db, current_user.id)


@purchases_router.post(
    "/courses/{course_id}",
    response_model=purchase_schema.IdOut,
    status_code=status.HTTP_201_CREATED,
)
def purchase_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if course_crud.get_course(db, course_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    try:
        purchase = purchase_crud.create_purchase(db, current_user.id, course_id)
    except PlatformError as exc:
        raise exc.to_http() from exc
    logger.info("User %s purchased course %s", current_user.id, course_id)
    return {"id": purchase.id}


@subscriptions_router.get("", response_model=List[purchase_schema.SubscriptionOut])
def list_subscriptions(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user is None:
        return []
    return purchase_crud.get_user_subscriptions(db, current_user.id)


@subscriptions_router.post("/instructors/{instructor_id}", response_model=purchase_schema.IdOut)
def subscribe_to_instructor(
    instructor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if instructor_crud.get_instructor(db, instructor_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Instructor not found")
    subscription = purchase_crud.activate_subscription(db, current_user.id, instructor_id)
    logger.info("User %s subscribed to instructor %s", current_user.id, instructor_id)
    return {"id": subscription.id}
