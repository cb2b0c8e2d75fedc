from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_current_user, get_db, get_optional_user
from app.core.config import settings
from app.core.errors import PlatformError
from app.crud import breakdown_crud, instructor_crud
from app.models.user.user_model import User
from app.schemas.catalog import breakdown_schema, course_schema
from app.schemas.commerce.purchase_schema import IdOut
from app.services import catalog_service, entitlement_service
from app.services.progress_service import ProgressService

router = APIRouter()


@router.get("", response_model=List[breakdown_schema.BreakdownOut])
def list_breakdowns(db: Session = Depends(get_db)):
    return catalog_service.breakdowns_with_teachers(db, breakdown_crud.get_all_breakdowns(db))


@router.get("/latest", response_model=List[breakdown_schema.BreakdownOut])
def list_latest_breakdowns(db: Session = Depends(get_db)):
    breakdowns = breakdown_crud.get_latest_breakdowns(db, settings.LATEST_ITEMS_LIMIT)
    return catalog_service.breakdowns_with_teachers(db, breakdowns)


@router.get("/by-instructor/{instructor_id}", response_model=List[breakdown_schema.BreakdownOut])
def list_instructor_breakdowns(instructor_id: int, db: Session = Depends(get_db)):
    breakdowns = breakdown_crud.get_breakdowns_by_instructor(db, instructor_id)
    return catalog_service.breakdowns_with_teachers(db, breakdowns)


# Declared before ``/{breakdown_id}`` so "watched" is not parsed as an id.
@router.get("/watched", response_model=List[int])
def list_watched_breakdowns(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user is None:
        return []
    return ProgressService(db, current_user).get_watched_breakdown_ids()


@router.get("/{breakdown_id}", response_model=breakdown_schema.BreakdownOut)
def read_breakdown(breakdown_id: int, db: Session = Depends(get_db)):
    breakdown = breakdown_crud.get_breakdown(db, breakdown_id)
    if breakdown is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Breakdown not found")
    instructor = instructor_crud.get_instructor(db, breakdown.instructor_id)
    return catalog_service.breakdown_out(breakdown, instructor.name if instructor else None)


@router.get("/{breakdown_id}/access", response_model=course_schema.AccessOut)
def read_breakdown_access(
    breakdown_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return {"has_access": entitlement_service.has_access_to_breakdown(db, current_user, breakdown_id)}


@router.get("/{breakdown_id}/watched", response_model=breakdown_schema.WatchStatusOut)
def read_watch_status(
    breakdown_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user is None:
        return {"watched": False}
    return {"watched": ProgressService(db, current_user).has_watched_breakdown(breakdown_id)}


@router.post("/{breakdown_id}/watch", response_model=IdOut)
def mark_watched(
    breakdown_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        watch_id = ProgressService(db, current_user).mark_breakdown_watched(breakdown_id)
    except PlatformError as exc:
        raise exc.to_http() from exc
    return {"id": watch_id}


@router.delete("/{breakdown_id}/watch", status_code=status.HTTP_204_NO_CONTENT)
def unmark_watched(
    breakdown_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ProgressService(db, current_user).unmark_breakdown_watched(breakdown_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
