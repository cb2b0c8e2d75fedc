from __future__ import annotations

import pytest
from fastapi import HTTPException

from app.api.v2.endpoints.breakdown_router import (
    list_watched_breakdowns,
    mark_watched,
    read_watch_status,
    unmark_watched,
)
from app.api.v2.endpoints.enrollment_router import (
    complete_section,
    enroll,
    list_enrollments,
    read_enrollment,
)
from app.core.errors import ConflictError, NotFoundError
from app.models.catalog.course_model import Course
from app.models.progress.breakdown_watch_model import BreakdownWatch
from app.services.progress_service import ProgressService, progress_percentage, section_key
from tests.utils import build_volumes, create_breakdown, create_course, create_instructor, create_user


@pytest.fixture()
def user(db_session):
    return create_user(db_session, username="student")


@pytest.fixture()
def course(db_session):
    instructor = create_instructor(db_session, name="Coach")
    # Two volumes of two sections each.
    return create_course(db_session, instructor, volumes=build_volumes(2, 2))


@pytest.mark.parametrize(
    "completed,total,expected",
    [(0, 4, 0), (3, 4, 75), (4, 4, 100), (1, 3, 33), (2, 3, 67), (1, 8, 13), (5, 0, 0)],
)
def test_progress_percentage(completed, total, expected):
    assert progress_percentage(completed, total) == expected


def test_section_key_is_positional():
    assert section_key(1, 0) == "1-0"


def test_enroll_then_complete_every_section(db_session, user, course):
    service = ProgressService(db_session, user)
    service.enroll(course.id)

    for section_id in ("0-0", "0-1", "1-0"):
        service.mark_section_complete(course.id, section_id)

    partial = service.get_enrollment(course.id)
    assert partial.progress == 75
    assert partial.total_sections == 4
    assert partial.completed_at is None

    service.mark_section_complete(course.id, "1-1")

    finished = service.get_enrollment(course.id)
    assert finished.progress == 100
    assert finished.completed_at is not None


def test_completing_same_section_twice_is_a_no_op(db_session, user, course):
    service = ProgressService(db_session, user)
    service.enroll(course.id)

    service.mark_section_complete(course.id, "0-0")
    enrollment = service.mark_section_complete(course.id, "0-0")

    assert enrollment.completed_sections == ["0-0"]


def test_completed_at_is_kept_when_sections_are_added(db_session, user, course):
    service = ProgressService(db_session, user)
    service.enroll(course.id)
    for section_id in ("0-0", "0-1", "1-0", "1-1"):
        service.mark_section_complete(course.id, section_id)
    stamped = service.get_enrollment(course.id).completed_at

    course.volumes = build_volumes(2, 2, 2)
    db_session.commit()

    service.mark_section_complete(course.id, "2-0")
    enrollment = service.get_enrollment(course.id)
    assert enrollment.completed_at == stamped
    assert enrollment.progress == 83


def test_course_without_sections_never_completes(db_session, user):
    empty = create_course(db_session, create_instructor(db_session), volumes=[])
    service = ProgressService(db_session, user)
    service.enroll(empty.id)

    enrollment = service.mark_section_complete(empty.id, "0-0")

    assert enrollment.completed_at is None
    assert service.get_enrollment(empty.id).progress == 0


def test_double_enroll_conflicts(db_session, user, course):
    enroll(course.id, db=db_session, current_user=user)
    with pytest.raises(HTTPException) as exc:
        enroll(course.id, db=db_session, current_user=user)
    assert exc.value.status_code == 409
    assert exc.value.detail == "Already enrolled"


def test_enroll_unknown_course(db_session, user):
    with pytest.raises(NotFoundError):
        ProgressService(db_session, user).enroll(31337)


def test_complete_section_without_enrollment(db_session, user, course):
    with pytest.raises(HTTPException) as exc:
        complete_section(course.id, "0-0", db=db_session, current_user=user)
    assert exc.value.status_code == 404
    assert exc.value.detail == "Not enrolled in this course"


def test_complete_section_endpoint_returns_progress(db_session, user, course):
    enroll(course.id, db=db_session, current_user=user)
    payload = complete_section(course.id, "0-1", db=db_session, current_user=user)
    assert payload.progress == 25
    assert payload.completed_sections == ["0-1"]


def test_enrollment_reads_degrade_for_anonymous(db_session, course):
    assert read_enrollment(course.id, db=db_session, current_user=None) is None
    assert list_enrollments(db=db_session, current_user=None) == []


def test_user_enrollments_skip_deleted_courses(db_session, user, course):
    other = create_course(db_session, instructor=None, instructor_id=888, title="Doomed")
    service = ProgressService(db_session, user)
    service.enroll(course.id)
    service.enroll(other.id)

    db_session.delete(db_session.get(Course, other.id))
    db_session.commit()

    enrollments = list_enrollments(db=db_session, current_user=user)
    assert [e.course.id for e in enrollments] == [course.id]
    assert enrollments[0].course.teacher == "Coach"
    assert enrollments[0].total_sections == 4


def test_enroll_duplicate_raises_conflict_error(db_session, user, course):
    service = ProgressService(db_session, user)
    service.enroll(course.id)
    with pytest.raises(ConflictError):
        service.enroll(course.id)


def test_breakdown_watch_lifecycle(db_session, user):
    breakdown = create_breakdown(db_session)

    first = mark_watched(breakdown.id, db=db_session, current_user=user)
    second = mark_watched(breakdown.id, db=db_session, current_user=user)

    assert first == second
    assert db_session.query(BreakdownWatch).count() == 1
    assert read_watch_status(breakdown.id, db=db_session, current_user=user) == {"watched": True}
    assert list_watched_breakdowns(db=db_session, current_user=user) == [breakdown.id]

    unmark_watched(breakdown.id, db=db_session, current_user=user)
    unmark_watched(breakdown.id, db=db_session, current_user=user)

    assert read_watch_status(breakdown.id, db=db_session, current_user=user) == {"watched": False}
    assert list_watched_breakdowns(db=db_session, current_user=user) == []


def test_watching_unknown_breakdown(db_session, user):
    with pytest.raises(HTTPException) as exc:
        mark_watched(5, db=db_session, current_user=user)
    assert exc.value.status_code == 404


def test_watch_status_for_anonymous(db_session):
    assert read_watch_status(1, db=db_session, current_user=None) == {"watched": False}
    assert list_watched_breakdowns(db=db_session, current_user=None) == []
