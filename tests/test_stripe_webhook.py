from __future__ import annotations

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from app.api.v2.endpoints.stripe_router import stripe_webhook
from app.core.errors import SignatureVerificationError
from app.crud import purchase_crud
from app.models.commerce.purchase_model import Purchase
from app.models.commerce.subscription_model import Subscription
from app.services.stripe_webhook_service import StripeWebhookService, verify_event
from tests.utils import create_course, create_instructor, create_user, stripe_event, stripe_signature


def _request(payload: bytes, headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v2/stripe/webhook",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "query_string": b"",
    }

    async def receive():
        return {"type": "http.request", "body": payload, "more_body": False}

    return Request(scope, receive)


def _signed(payload: bytes) -> Request:
    return _request(payload, {"stripe-signature": stripe_signature(payload)})


@pytest.fixture()
def user(db_session):
    return create_user(db_session, username="fighter", external_id="user_fighter")


@pytest.fixture()
def instructor(db_session):
    return create_instructor(db_session)


def _course_checkout(course_id: int, clerk_id: str = "user_fighter") -> bytes:
    return stripe_event(
        "checkout.session.completed",
        {
            "id": "cs_test_1",
            "object": "checkout.session",
            "mode": "payment",
            "metadata": {"type": "course_purchase", "courseId": str(course_id), "clerkId": clerk_id},
        },
    )


@pytest.mark.asyncio
async def test_course_purchase_event_replay_creates_one_row(db_session, user, instructor):
    course = create_course(db_session, instructor)
    payload = _course_checkout(course.id)

    assert await stripe_webhook(_signed(payload), db=db_session) == {"status": "success"}
    assert await stripe_webhook(_signed(payload), db=db_session) == {"status": "success"}

    assert db_session.query(Purchase).filter(Purchase.user_id == user.id).count() == 1


def test_replayed_purchase_returns_same_row(db_session, user, instructor):
    course = create_course(db_session, instructor)
    service = StripeWebhookService(db_session)

    first = service.purchase_course("user_fighter", course.id)
    second = service.purchase_course("user_fighter", course.id)

    assert first.id == second.id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "subscription,customer",
    [("sub_123", "cus_123"), ({"id": "sub_123", "object": "subscription"}, {"id": "cus_123"})],
)
async def test_subscription_checkout_activates_row(db_session, user, instructor, subscription, customer):
    payload = stripe_event(
        "checkout.session.completed",
        {
            "id": "cs_test_2",
            "mode": "subscription",
            "subscription": subscription,
            "customer": customer,
            "metadata": {
                "type": "instructor_subscription",
                "instructorId": str(instructor.id),
                "clerkId": "user_fighter",
            },
        },
    )

    await stripe_webhook(_signed(payload), db=db_session)

    row = db_session.query(Subscription).one()
    assert row.active is True
    assert row.stripe_subscription_id == "sub_123"
    assert row.stripe_customer_id == "cus_123"


@pytest.mark.asyncio
async def test_subscription_checkout_reactivates_existing_row(db_session, user, instructor):
    purchase_crud.activate_subscription(
        db_session, user.id, instructor.id, stripe_subscription_id="sub_old", stripe_customer_id="cus_old"
    )
    purchase_crud.deactivate_subscription_by_stripe_id(db_session, "sub_old")

    payload = stripe_event(
        "checkout.session.completed",
        {
            "subscription": "sub_new",
            "customer": "cus_new",
            "metadata": {
                "type": "instructor_subscription",
                "instructor_id": str(instructor.id),
                "clerk_id": "user_fighter",
            },
        },
    )
    await stripe_webhook(_signed(payload), db=db_session)

    row = db_session.query(Subscription).one()
    assert row.active is True
    assert row.stripe_subscription_id == "sub_new"


@pytest.mark.asyncio
async def test_subscription_checkout_without_references_is_ignored(db_session, user, instructor):
    payload = stripe_event(
        "checkout.session.completed",
        {
            "subscription": None,
            "customer": "cus_1",
            "metadata": {
                "type": "instructor_subscription",
                "instructorId": str(instructor.id),
                "clerkId": "user_fighter",
            },
        },
    )
    await stripe_webhook(_signed(payload), db=db_session)
    assert db_session.query(Subscription).count() == 0


@pytest.mark.asyncio
async def test_subscription_deleted_deactivates_by_reference(db_session, user, instructor):
    purchase_crud.activate_subscription(
        db_session, user.id, instructor.id, stripe_subscription_id="sub_9", stripe_customer_id="cus_9"
    )

    payload = stripe_event("customer.subscription.deleted", {"id": "sub_9", "object": "subscription"})
    await stripe_webhook(_signed(payload), db=db_session)

    row = db_session.query(Subscription).one()
    assert row.active is False
    assert row.stripe_subscription_id == "sub_9"


@pytest.mark.asyncio
async def test_subscription_deleted_for_unknown_reference_is_a_no_op(db_session):
    payload = stripe_event("customer.subscription.deleted", {"id": "sub_unknown"})
    assert await stripe_webhook(_signed(payload), db=db_session) == {"status": "success"}
    assert db_session.query(Subscription).count() == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "invoice",
    [
        {"subscription": "sub_7"},
        {"subscription": {"id": "sub_7"}},
        {"parent": {"subscription_details": {"subscription": "sub_7"}}},
    ],
)
async def test_payment_failure_deactivates(db_session, user, instructor, invoice):
    purchase_crud.activate_subscription(db_session, user.id, instructor.id, stripe_subscription_id="sub_7")

    await stripe_webhook(_signed(stripe_event("invoice.payment_failed", invoice)), db=db_session)

    assert db_session.query(Subscription).one().active is False


@pytest.mark.asyncio
async def test_unhandled_events_are_acknowledged(db_session):
    payload = stripe_event("customer.created", {"id": "cus_1"})
    assert await stripe_webhook(_signed(payload), db=db_session) == {"status": "success"}

    no_metadata = stripe_event("checkout.session.completed", {"id": "cs_1"})
    assert await stripe_webhook(_signed(no_metadata), db=db_session) == {"status": "success"}


@pytest.mark.asyncio
async def test_missing_signature_header(db_session):
    with pytest.raises(HTTPException) as exc:
        await stripe_webhook(_request(b"{}", {}), db=db_session)
    assert exc.value.status_code == 400
    assert exc.value.detail == "Missing stripe-signature header"


@pytest.mark.asyncio
async def test_bad_signature_executes_nothing(db_session, user, instructor):
    course = create_course(db_session, instructor)
    payload = _course_checkout(course.id)
    request = _request(payload, {"stripe-signature": stripe_signature(payload, secret="whsec_wrong")})

    with pytest.raises(HTTPException) as exc:
        await stripe_webhook(request, db=db_session)

    assert exc.value.status_code == 400
    assert db_session.query(Purchase).count() == 0


def test_tampered_payload_fails_verification():
    payload = stripe_event("customer.created", {"id": "cus_1"})
    header = stripe_signature(payload)
    with pytest.raises(SignatureVerificationError):
        verify_event(payload.replace(b"cus_1", b"cus_2"), header)


@pytest.mark.asyncio
async def test_unknown_user_fails_processing(db_session, instructor):
    course = create_course(db_session, instructor)
    payload = _course_checkout(course.id, clerk_id="user_nobody")

    with pytest.raises(HTTPException) as exc:
        await stripe_webhook(_signed(payload), db=db_session)

    assert exc.value.status_code == 500
    assert exc.value.detail == "Webhook processing failed"
    assert db_session.query(Purchase).count() == 0
