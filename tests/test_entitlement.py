from __future__ import annotations

import pytest

from app.api.v2.endpoints.breakdown_router import read_breakdown_access
from app.api.v2.endpoints.course_router import read_course_access
from app.crud import purchase_crud
from app.services.entitlement_service import has_access_to_breakdown, has_access_to_course
from tests.utils import create_breakdown, create_course, create_instructor, create_user


@pytest.fixture()
def user(db_session):
    return create_user(db_session, username="viewer")


@pytest.fixture()
def instructor(db_session):
    return create_instructor(db_session)


def test_anonymous_never_has_access(db_session, instructor):
    course = create_course(db_session, instructor, price=None)
    assert has_access_to_course(db_session, None, course.id) is False
    assert read_course_access(course.id, db=db_session, current_user=None) == {"has_access": False}


def test_missing_course_denies(db_session, user):
    assert has_access_to_course(db_session, user, 404) is False


@pytest.mark.parametrize("price", [None, 0])
def test_free_course_is_open(db_session, user, instructor, price):
    course = create_course(db_session, instructor, price=price)
    assert has_access_to_course(db_session, user, course.id) is True


def test_paid_course_without_rows_is_closed(db_session, user, instructor):
    course = create_course(db_session, instructor, price=40)
    assert has_access_to_course(db_session, user, course.id) is False


def test_purchase_opens_course_without_subscription(db_session, user, instructor):
    course = create_course(db_session, instructor, price=40)
    purchase_crud.create_purchase(db_session, user.id, course.id)
    assert has_access_to_course(db_session, user, course.id) is True


def test_active_subscription_opens_instructor_courses(db_session, user, instructor):
    course = create_course(db_session, instructor, price=40)
    other = create_course(db_session, instructor=None, instructor_id=instructor.id + 100, price=40)
    purchase_crud.activate_subscription(db_session, user.id, instructor.id)

    assert has_access_to_course(db_session, user, course.id) is True
    assert has_access_to_course(db_session, user, other.id) is False


def test_inactive_subscription_closes_paid_course(db_session, user, instructor):
    course = create_course(db_session, instructor, price=40)
    purchase_crud.activate_subscription(db_session, user.id, instructor.id, stripe_subscription_id="sub_1")
    purchase_crud.deactivate_subscription_by_stripe_id(db_session, "sub_1")

    assert has_access_to_course(db_session, user, course.id) is False


def test_inactive_subscription_keeps_purchased_course(db_session, user, instructor):
    course = create_course(db_session, instructor, price=40)
    purchase_crud.create_purchase(db_session, user.id, course.id)
    purchase_crud.activate_subscription(db_session, user.id, instructor.id, stripe_subscription_id="sub_1")
    purchase_crud.deactivate_subscription_by_stripe_id(db_session, "sub_1")

    assert has_access_to_course(db_session, user, course.id) is True


def test_breakdown_needs_active_subscription(db_session, user, instructor):
    breakdown = create_breakdown(db_session, instructor)

    assert has_access_to_breakdown(db_session, None, breakdown.id) is False
    assert has_access_to_breakdown(db_session, user, breakdown.id) is False
    assert has_access_to_breakdown(db_session, user, 999) is False

    purchase_crud.activate_subscription(db_session, user.id, instructor.id)
    response = read_breakdown_access(breakdown.id, db=db_session, current_user=user)
    assert response == {"has_access": True}


def test_access_checks_do_not_write(db_session, user, instructor):
    course = create_course(db_session, instructor, price=40)
    has_access_to_course(db_session, user, course.id)
    assert not db_session.new
    assert not db_session.dirty
