import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.crud import breakdown_crud, course_crud, enrollment_crud
from app.models.catalog.course_model import Course
from app.models.progress.enrollment_model import Enrollment
from app.models.user.user_model import User
from app.schemas.progress.enrollment_schema import EnrollmentOut, EnrollmentWithCourseOut
from app.services import catalog_service

logger = logging.getLogger(__name__)


def section_key(volume_index: int, section_index: int) -> str:
    """Positional identifier of a section, as stored in ``completed_sections``."""
    return f"{volume_index}-{section_index}"


def progress_percentage(completed: int, total: int) -> int:
    """Whole-number percentage, halves rounded up; 0 for a course without sections."""
    if total <= 0:
        return 0
    return int(math.floor(completed * 100 / total + 0.5))


class ProgressService:
    """Enrollment and completion tracking for one user."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------
    def enroll(self, course_id: int) -> Enrollment:
        """Start tracking a course. Enrolling twice is an error, not a no-op."""
        if course_crud.get_course(self.db, course_id) is None:
            raise NotFoundError("Course not found")

        enrollment = enrollment_crud.create_enrollment(self.db, self.user.id, course_id)
        logger.info("User %s enrolled in course %s", self.user.id, course_id)
        return enrollment

    def mark_section_complete(self, course_id: int, section_id: str) -> Enrollment:
        """Add ``section_id`` to the completed set and stamp completion if it was the last one.

        The total is recounted from the course as it is now. ``completed_at``
        is only ever set, never cleared.
        """
        enrollment = enrollment_crud.get_enrollment(self.db, self.user.id, course_id)
        if enrollment is None:
            raise NotFoundError("Not enrolled in this course")

        completed = list(enrollment.completed_sections or [])
        if section_id in completed:
            return enrollment

        completed.append(section_id)
        enrollment.completed_sections = completed

        course = course_crud.get_course(self.db, course_id)
        total_sections = course.total_sections if course else 0
        if enrollment.completed_at is None and total_sections > 0 and len(completed) >= total_sections:
            enrollment.completed_at = datetime.now(timezone.utc)
            logger.info("User %s completed course %s", self.user.id, course_id)

        self.db.commit()
        self.db.refresh(enrollment)
        return enrollment

    def get_enrollment(self, course_id: int) -> Optional[EnrollmentOut]:
        enrollment = enrollment_crud.get_enrollment(self.db, self.user.id, course_id)
        if enrollment is None:
            return None
        course = course_crud.get_course(self.db, course_id)
        return self._enrollment_out(enrollment, course)

    def get_user_enrollments(self) -> List[EnrollmentWithCourseOut]:
        """Every enrollment with its course; enrollments of deleted courses are skipped."""
        results: List[EnrollmentWithCourseOut] = []
        enrollments = enrollment_crud.get_user_enrollments(self.db, self.user.id)
        courses = {
            enrollment.course_id: course_crud.get_course(self.db, enrollment.course_id)
            for enrollment in enrollments
        }
        existing = [course for course in courses.values() if course is not None]
        course_payloads = {payload.id: payload for payload in catalog_service.with_teachers(self.db, existing)}

        for enrollment in enrollments:
            course_payload = course_payloads.get(enrollment.course_id)
            if course_payload is None:
                continue
            base = self._enrollment_out(enrollment, courses[enrollment.course_id])
            results.append(EnrollmentWithCourseOut(**base.model_dump(), course=course_payload))
        return results

    @staticmethod
    def _enrollment_out(enrollment: Enrollment, course: Optional[Course]) -> EnrollmentOut:
        total_sections = course.total_sections if course else 0
        completed = len(enrollment.completed_sections or [])
        return EnrollmentOut.model_validate(enrollment).model_copy(
            update={
                "progress": progress_percentage(completed, total_sections),
                "total_sections": total_sections,
            }
        )

    # ------------------------------------------------------------------
    # Breakdowns
    # ------------------------------------------------------------------
    def mark_breakdown_watched(self, breakdown_id: int) -> int:
        if breakdown_crud.get_breakdown(self.db, breakdown_id) is None:
            raise NotFoundError("Breakdown not found")
        watch = enrollment_crud.get_or_create_breakdown_watch(self.db, self.user.id, breakdown_id)
        return watch.id

    def unmark_breakdown_watched(self, breakdown_id: int) -> None:
        enrollment_crud.delete_breakdown_watch(self.db, self.user.id, breakdown_id)

    def has_watched_breakdown(self, breakdown_id: int) -> bool:
        return enrollment_crud.get_breakdown_watch(self.db, self.user.id, breakdown_id) is not None

    def get_watched_breakdown_ids(self) -> List[int]:
        return enrollment_crud.get_user_watched_breakdown_ids(self.db, self.user.id)
