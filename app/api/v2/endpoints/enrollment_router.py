from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_current_user, get_db, get_optional_user
from app.core.errors import PlatformError
from app.models.user.user_model import User
from app.schemas.commerce.purchase_schema import IdOut
from app.schemas.progress import enrollment_schema
from app.services.progress_service import ProgressService

router = APIRouter()


@router.get("", response_model=List[enrollment_schema.EnrollmentWithCourseOut])
def list_enrollments(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user is None:
        return []
    return ProgressService(db, current_user).get_user_enrollments()


@router.post("/{course_id}", response_model=IdOut, status_code=status.HTTP_201_CREATED)
def enroll(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        enrollment = ProgressService(db, current_user).enroll(course_id)
    except PlatformError as exc:
        raise exc.to_http() from exc
    return {"id": enrollment.id}


@router.get("/{course_id}", response_model=Optional[enrollment_schema.EnrollmentOut])
def read_enrollment(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user is None:
        return None
    return ProgressService(db, current_user).get_enrollment(course_id)


@router.post(
    "/{course_id}/sections/{section_id}/complete",
    response_model=enrollment_schema.EnrollmentOut,
)
def complete_section(
    course_id: int,
    section_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db, current_user)
    try:
        service.mark_section_complete(course_id, section_id)
    except PlatformError as exc:
        raise exc.to_http() from exc
    return service.get_enrollment(course_id)
