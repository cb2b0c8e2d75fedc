"""Reconcile Stripe events into purchase and subscription rows.

Stripe delivers at least once and may reorder or replay events, so every
write here is an upsert: replaying an event converges on the same state.
Signature verification happens before anything is dispatched; once an event
reaches :class:`StripeWebhookService` its content is trusted.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import stripe
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, SignatureVerificationError
from app.crud import purchase_crud, user_crud
from app.models.commerce.purchase_model import Purchase
from app.models.commerce.subscription_model import Subscription
from app.models.user.user_model import User
from app.services.checkout_service import COURSE_PURCHASE, INSTRUCTOR_SUBSCRIPTION

logger = logging.getLogger(__name__)


def verify_event(payload: bytes, sig_header: str) -> Dict[str, Any]:
    """Check the ``stripe-signature`` header against the endpoint secret and parse the body."""
    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"),
            sig_header,
            settings.STRIPE_WEBHOOK_SECRET or "",
        )
        event = json.loads(payload)
    except (ValueError, stripe.SignatureVerificationError) as exc:
        logger.warning("Rejected Stripe webhook: %s", exc)
        raise SignatureVerificationError() from exc

    if not isinstance(event, dict):
        raise SignatureVerificationError("Malformed webhook payload")
    return event


# --- Helpers Stripe -------------------------------------------------------

def _stripe_id(value: Any) -> Optional[str]:
    """Accept a bare id or an expanded object carrying an ``id``."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        return value.get("id") or None
    return None


def _metadata_value(metadata: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = metadata.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _parse_int(value: Optional[str], label: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {label} in Stripe metadata: {value!r}") from None


def _invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    subscription_id = _stripe_id(invoice.get("subscription"))
    if subscription_id:
        return subscription_id
    # Newer API versions moved the reference under ``parent``.
    parent = invoice.get("parent") or {}
    details = parent.get("subscription_details") or {}
    return _stripe_id(details.get("subscription"))


class StripeWebhookService:
    def __init__(self, db: Session):
        self.db = db

    def handle_event(self, event: Dict[str, Any]) -> None:
        event_type = event.get("type")
        data_object = (event.get("data") or {}).get("object") or {}
        logger.info("Stripe webhook received: %s (%s)", event_type, event.get("id"))

        if event_type == "checkout.session.completed":
            self._handle_checkout_completed(data_object)
        elif event_type == "customer.subscription.deleted":
            self.deactivate_subscription(_stripe_id(data_object.get("id")))
        elif event_type == "invoice.payment_failed":
            self.deactivate_subscription(_invoice_subscription_id(data_object))
        else:
            logger.debug("Stripe event %s ignored.", event_type)

    # ------------------------------------------------------------------
    def _handle_checkout_completed(self, session: Dict[str, Any]) -> None:
        metadata = session.get("metadata") or {}
        if not metadata:
            logger.info("Checkout session %s has no metadata, ignored.", session.get("id"))
            return

        kind = metadata.get("type")
        if kind == COURSE_PURCHASE:
            self.purchase_course(
                _metadata_value(metadata, "clerkId", "clerk_id", "userExternalId"),
                _parse_int(_metadata_value(metadata, "courseId", "course_id"), "courseId"),
            )
        elif kind == INSTRUCTOR_SUBSCRIPTION:
            subscription_id = _stripe_id(session.get("subscription"))
            customer_id = _stripe_id(session.get("customer"))
            if not (subscription_id and customer_id):
                logger.warning(
                    "Subscription checkout %s without subscription/customer reference, ignored.",
                    session.get("id"),
                )
                return
            self.activate_subscription(
                _metadata_value(metadata, "clerkId", "clerk_id", "userExternalId"),
                _parse_int(_metadata_value(metadata, "instructorId", "instructor_id"), "instructorId"),
                stripe_subscription_id=subscription_id,
                stripe_customer_id=customer_id,
            )
        else:
            logger.info("Checkout session %s with unknown type %r, ignored.", session.get("id"), kind)

    def _resolve_user(self, external_id: Optional[str]) -> User:
        user = user_crud.get_user_by_external_id(self.db, external_id) if external_id else None
        if user is None:
            raise NotFoundError(f"User not found for identity {external_id!r}")
        return user

    # ------------------------------------------------------------------
    # Reconciliation operations
    # ------------------------------------------------------------------
    def purchase_course(self, external_id: Optional[str], course_id: int) -> Purchase:
        """Record a paid course; an existing purchase is returned unchanged."""
        user = self._resolve_user(external_id)
        purchase = purchase_crud.get_or_create_purchase(self.db, user.id, course_id)
        logger.info("Purchase %s recorded (user=%s, course=%s)", purchase.id, user.id, course_id)
        return purchase

    def activate_subscription(
        self,
        external_id: Optional[str],
        instructor_id: int,
        *,
        stripe_subscription_id: str,
        stripe_customer_id: str,
    ) -> Subscription:
        user = self._resolve_user(external_id)
        subscription = purchase_crud.activate_subscription(
            self.db,
            user.id,
            instructor_id,
            stripe_subscription_id=stripe_subscription_id,
            stripe_customer_id=stripe_customer_id,
        )
        logger.info(
            "Subscription %s active (user=%s, instructor=%s, stripe=%s)",
            subscription.id,
            user.id,
            instructor_id,
            stripe_subscription_id,
        )
        return subscription

    def deactivate_subscription(self, stripe_subscription_id: Optional[str]) -> Optional[Subscription]:
        if not stripe_subscription_id:
            return None
        subscription = purchase_crud.deactivate_subscription_by_stripe_id(self.db, stripe_subscription_id)
        if subscription is None:
            logger.info("No subscription matches %s, nothing to deactivate.", stripe_subscription_id)
        else:
            logger.info("Subscription %s deactivated (stripe=%s)", subscription.id, stripe_subscription_id)
        return subscription
