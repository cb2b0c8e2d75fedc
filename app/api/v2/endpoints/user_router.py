import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_current_user, get_db, get_optional_user, require_identity
from app.core.errors import PlatformError
from app.core.security import Identity
from app.crud import user_crud
from app.models.user.user_model import User
from app.schemas.user import user_schema

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/me", response_model=Optional[user_schema.User])
def read_current_user(current_user: Optional[User] = Depends(get_optional_user)):
    """The caller's profile, or ``null`` before onboarding."""
    return current_user


@router.get("/check-username", response_model=user_schema.UsernameAvailability)
def check_username(username: str = Query(""), db: Session = Depends(get_db)):
    return {"available": user_crud.is_username_available(db, username.strip())}


@router.post("", response_model=user_schema.User, status_code=status.HTTP_201_CREATED)
def create_user_endpoint(
    user_in: user_schema.UserCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
):
    try:
        user = user_crud.create_user(db, identity.subject, user_in)
    except PlatformError as exc:
        raise exc.to_http() from exc
    logger.info("User %s onboarded (identity=%s)", user.id, identity.subject)
    return user


@router.put("/me/belts", response_model=user_schema.User)
def update_belts(
    payload: user_schema.BeltUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not payload.belts:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No belts supplied")
    return user_crud.update_user_belts(db, current_user, payload.belts)
