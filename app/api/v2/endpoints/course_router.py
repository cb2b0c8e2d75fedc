from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_db, get_optional_user
from app.core.config import settings
from app.crud import course_crud, instructor_crud
from app.models.user.user_model import User
from app.schemas.catalog import course_schema
from app.services import catalog_service, entitlement_service

router = APIRouter()


@router.get("", response_model=List[course_schema.CourseOut])
def list_courses(db: Session = Depends(get_db)):
    return catalog_service.with_teachers(db, course_crud.get_all_courses(db))


@router.get("/latest", response_model=List[course_schema.CourseOut])
def list_latest_courses(db: Session = Depends(get_db)):
    courses = course_crud.get_latest_courses(db, settings.LATEST_ITEMS_LIMIT)
    return catalog_service.with_teachers(db, courses)


@router.get("/free", response_model=List[course_schema.CourseOut])
def list_free_courses(db: Session = Depends(get_db)):
    return catalog_service.with_teachers(db, course_crud.get_free_courses(db))


@router.get("/by-instructor/{instructor_id}", response_model=List[course_schema.CourseOut])
def list_instructor_courses(instructor_id: int, db: Session = Depends(get_db)):
    return catalog_service.with_teachers(db, course_crud.get_courses_by_instructor(db, instructor_id))


@router.get("/{course_id}", response_model=course_schema.CourseOut)
def read_course(course_id: int, db: Session = Depends(get_db)):
    course = course_crud.get_course(db, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    instructor = instructor_crud.get_instructor(db, course.instructor_id)
    return catalog_service.course_out(course, instructor.name if instructor else None)


@router.get("/{course_id}/access", response_model=course_schema.AccessOut)
def read_course_access(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return {"has_access": entitlement_service.has_access_to_course(db, current_user, course_id)}
