# Fichier: fightmeta/backend/app/crud/purchase_crud.py
"""Purchase and subscription rows.

User-facing purchases are strict (a duplicate is an error) while the variants
used by payment reconciliation are idempotent, because webhook delivery is
at-least-once and replays must converge on the same rows.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError
from app.models.commerce.purchase_model import Purchase
from app.models.commerce.subscription_model import Subscription

logger = logging.getLogger(__name__)


# --- Purchases ---------------------------------------------------------------

def get_purchase(db: Session, user_id: int, course_id: int) -> Optional[Purchase]:
    return (
        db.query(Purchase)
        .filter(Purchase.user_id == user_id, Purchase.course_id == course_id)
        .first()
    )


def get_user_purchases(db: Session, user_id: int) -> List[Purchase]:
    return db.query(Purchase).filter(Purchase.user_id == user_id).order_by(Purchase.id.asc()).all()


def create_purchase(db: Session, user_id: int, course_id: int) -> Purchase:
    """Insert a purchase, failing with ``ConflictError`` if one already exists."""
    if get_purchase(db, user_id, course_id):
        raise ConflictError("Already purchased")

    purchase = Purchase(user_id=user_id, course_id=course_id)
    db.add(purchase)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Already purchased") from exc
    db.refresh(purchase)
    return purchase


def get_or_create_purchase(db: Session, user_id: int, course_id: int) -> Purchase:
    """Insert a purchase unless one exists; the existing row is returned untouched."""
    existing = get_purchase(db, user_id, course_id)
    if existing:
        return existing

    purchase = Purchase(user_id=user_id, course_id=course_id)
    db.add(purchase)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Purchase (user=%s, course=%s) inserted concurrently, reusing it.", user_id, course_id)
        return get_purchase(db, user_id, course_id)
    db.refresh(purchase)
    return purchase


# --- Subscriptions -----------------------------------------------------------

def get_subscription(db: Session, user_id: int, instructor_id: int) -> Optional[Subscription]:
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id, Subscription.instructor_id == instructor_id)
        .first()
    )


def get_subscription_by_stripe_id(db: Session, stripe_subscription_id: str) -> Optional[Subscription]:
    return (
        db.query(Subscription)
        .filter(Subscription.stripe_subscription_id == stripe_subscription_id)
        .first()
    )


def get_user_subscriptions(db: Session, user_id: int) -> List[Subscription]:
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id)
        .order_by(Subscription.id.asc())
        .all()
    )


def has_active_subscription(db: Session, user_id: int, instructor_id: int) -> bool:
    subscription = get_subscription(db, user_id, instructor_id)
    return bool(subscription and subscription.active)


def activate_subscription(
    db: Session,
    user_id: int,
    instructor_id: int,
    *,
    stripe_subscription_id: Optional[str] = None,
    stripe_customer_id: Optional[str] = None,
) -> Subscription:
    """Upsert the (user, instructor) row to active.

    Processor references are only overwritten when new ones are supplied.
    """

    def _apply(row: Subscription) -> None:
        row.active = True
        if stripe_subscription_id is not None:
            row.stripe_subscription_id = stripe_subscription_id
        if stripe_customer_id is not None:
            row.stripe_customer_id = stripe_customer_id

    subscription = get_subscription(db, user_id, instructor_id)
    if subscription is None:
        subscription = Subscription(user_id=user_id, instructor_id=instructor_id)
        _apply(subscription)
        db.add(subscription)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            subscription = get_subscription(db, user_id, instructor_id)
            _apply(subscription)
            db.commit()
    else:
        _apply(subscription)
        db.commit()

    db.refresh(subscription)
    return subscription


def deactivate_subscription_by_stripe_id(db: Session, stripe_subscription_id: str) -> Optional[Subscription]:
    """Flag the matching row inactive; returns None when nothing matches."""
    subscription = get_subscription_by_stripe_id(db, stripe_subscription_id)
    if subscription is None:
        return None

    if subscription.active:
        subscription.active = False
        db.commit()
        db.refresh(subscription)
    return subscription
