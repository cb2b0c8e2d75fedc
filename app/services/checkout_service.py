"""Stripe Checkout sessions for course purchases and instructor subscriptions.

Sessions are created on the instructor's connected account with the platform
fee taken on top: a flat application fee for one-time charges and a
percentage for subscriptions. The resulting purchase or subscription row is
only written later, when the webhook confirms the payment.
"""

from __future__ import annotations

import logging
import math

import stripe
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ExternalServiceError, NotFoundError, PlatformError
from app.core.security import Identity
from app.crud import course_crud, instructor_crud
from app.models.catalog.instructor_model import Instructor

stripe.api_key = settings.STRIPE_SECRET_KEY

logger = logging.getLogger(__name__)

COURSE_PURCHASE = "course_purchase"
INSTRUCTOR_SUBSCRIPTION = "instructor_subscription"


def to_cents(amount: float) -> int:
    return int(math.floor(amount * 100 + 0.5))


def application_fee_for(amount_cents: int) -> int:
    return int(math.floor(amount_cents * settings.PLATFORM_FEE_PERCENT / 100 + 0.5))


def _require_connected_account(instructor: Instructor | None) -> str:
    if instructor is None:
        raise NotFoundError("Instructor not found")
    if not instructor.stripe_connected_account_id:
        raise PlatformError("Instructor has not set up payments")
    return instructor.stripe_connected_account_id


def _create_session(params: dict, stripe_account: str) -> str:
    try:
        session = stripe.checkout.Session.create(stripe_account=stripe_account, **params)
    except stripe.StripeError as exc:
        logger.error("Stripe checkout session creation failed: %s", exc)
        raise ExternalServiceError(f"Payment processor error: {exc.user_message or exc}") from exc

    url = getattr(session, "url", None)
    if not url:
        raise ExternalServiceError("Failed to create checkout session")
    return url


def create_course_checkout(
    db: Session,
    identity: Identity,
    course_id: int,
    success_url: str,
    cancel_url: str,
) -> str:
    """Return the hosted checkout URL for a one-time course purchase."""
    course = course_crud.get_course(db, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    if course.is_free:
        raise PlatformError("Course is free — no checkout needed")

    account = _require_connected_account(instructor_crud.get_instructor(db, course.instructor_id))

    price_in_cents = to_cents(course.price)
    metadata = {
        "type": COURSE_PURCHASE,
        "courseId": str(course.id),
        "clerkId": identity.subject,
    }
    params = {
        "mode": "payment",
        "payment_method_types": list(settings.CHECKOUT_PAYMENT_METHOD_TYPES),
        "line_items": [
            {
                "price_data": {
                    "currency": settings.CHECKOUT_CURRENCY,
                    "product_data": {"name": course.title, "description": course.description},
                    "unit_amount": price_in_cents,
                },
                "quantity": 1,
            }
        ],
        "payment_intent_data": {
            "application_fee_amount": application_fee_for(price_in_cents),
            "metadata": metadata,
        },
        "metadata": metadata,
        "success_url": success_url,
        "cancel_url": cancel_url,
    }
    url = _create_session(params, account)
    logger.info("Checkout session created for course %s (identity=%s)", course.id, identity.subject)
    return url


def create_subscription_checkout(
    db: Session,
    identity: Identity,
    instructor_id: int,
    success_url: str,
    cancel_url: str,
) -> str:
    """Return the hosted checkout URL for a monthly instructor subscription."""
    instructor = instructor_crud.get_instructor(db, instructor_id)
    account = _require_connected_account(instructor)

    metadata = {
        "type": INSTRUCTOR_SUBSCRIPTION,
        "instructorId": str(instructor.id),
        "clerkId": identity.subject,
    }
    params = {
        "mode": "subscription",
        "payment_method_types": list(settings.CHECKOUT_PAYMENT_METHOD_TYPES),
        "line_items": [
            {
                "price_data": {
                    "currency": settings.CHECKOUT_CURRENCY,
                    "product_data": {"name": f"{instructor.name} — Monthly Subscription"},
                    "unit_amount": to_cents(instructor.subscription_price),
                    "recurring": {"interval": "month"},
                },
                "quantity": 1,
            }
        ],
        "subscription_data": {
            "application_fee_percent": settings.PLATFORM_FEE_PERCENT,
            "metadata": metadata,
        },
        "metadata": metadata,
        "success_url": success_url,
        "cancel_url": cancel_url,
    }
    url = _create_session(params, account)
    logger.info(
        "Subscription checkout session created for instructor %s (identity=%s)",
        instructor.id,
        identity.subject,
    )
    return url
