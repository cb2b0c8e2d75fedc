from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_db
from app.crud import instructor_crud
from app.schemas.catalog import instructor_schema

router = APIRouter()


@router.get("", response_model=List[instructor_schema.InstructorOut])
def list_instructors(db: Session = Depends(get_db)):
    return instructor_crud.get_instructors(db)


@router.get("/{instructor_id}", response_model=instructor_schema.InstructorOut)
def read_instructor(instructor_id: int, db: Session = Depends(get_db)):
    instructor = instructor_crud.get_instructor(db, instructor_id)
    if instructor is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Instructor not found")
    return instructor
