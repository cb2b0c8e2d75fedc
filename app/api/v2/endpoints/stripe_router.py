import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_db, require_identity
from app.core.errors import PlatformError
from app.core.security import Identity
from app.schemas.commerce import purchase_schema
from app.services import checkout_service
from app.services.stripe_webhook_service import StripeWebhookService, verify_event

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/checkout/course/{course_id}", response_model=purchase_schema.CheckoutSessionOut)
def create_course_checkout_session(
    course_id: int,
    payload: purchase_schema.CheckoutRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    """Hosted checkout for a one-time course purchase."""
    try:
        url = checkout_service.create_course_checkout(
            db, identity, course_id, payload.success_url, payload.cancel_url
        )
    except PlatformError as exc:
        raise exc.to_http() from exc
    return {"url": url}


@router.post("/checkout/instructor/{instructor_id}", response_model=purchase_schema.CheckoutSessionOut)
def create_subscription_checkout_session(
    instructor_id: int,
    payload: purchase_schema.CheckoutRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    """Hosted checkout for a monthly subscription to an instructor."""
    try:
        url = checkout_service.create_subscription_checkout(
            db, identity, instructor_id, payload.success_url, payload.cancel_url
        )
    except PlatformError as exc:
        raise exc.to_http() from exc
    return {"url": url}


@router.post("/webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    """Reconcile purchase and subscription rows from Stripe events."""
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        raise HTTPException(status_code=400, detail="Missing stripe-signature header")

    try:
        event = verify_event(payload, sig_header)
    except PlatformError as exc:
        raise exc.to_http() from exc

    try:
        StripeWebhookService(db).handle_event(event)
    except Exception:
        logger.exception("Stripe webhook %s failed", event.get("type"))
        raise HTTPException(status_code=500, detail="Webhook processing failed")

    return {"status": "success"}
