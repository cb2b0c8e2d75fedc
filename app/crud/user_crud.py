# Fichier: fightmeta/backend/app/crud/user_crud.py

import logging
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError
from app.models.user.user_model import User
from app.schemas.user.user_schema import BeltRank, UserCreate

logger = logging.getLogger(__name__)


def get_user_by_external_id(db: Session, external_id: str) -> Optional[User]:
    """
    Récupère l'utilisateur lié à une identité du fournisseur d'authentification.

    Args:
        db: La session de base de données.
        external_id: Le ``sub`` du token vérifié.

    Returns:
        L'objet User s'il est trouvé, sinon None.
    """
    return db.query(User).filter(User.external_id == external_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def is_username_available(db: Session, username: str) -> bool:
    """Advisory check used by the onboarding form; blank input is always available."""
    if not username or not username.strip():
        return True
    return get_user_by_username(db, username) is None


def create_user(db: Session, external_id: str, user: UserCreate) -> User:
    """
    Crée l'utilisateur local d'une identité externe.

    The first write wins: a second attempt for the same identity fails, and the
    username is re-checked here even if the form already asked, since another
    account may have claimed it in between.

    Raises:
        ConflictError: identité déjà enregistrée ou nom d'utilisateur pris.
    """
    if get_user_by_external_id(db, external_id):
        raise ConflictError("User already exists")

    if get_user_by_username(db, user.username):
        raise ConflictError("Username already taken")

    db_user = User(
        external_id=external_id,
        name=user.name,
        username=user.username,
        image_url=user.image_url,
        date_of_birth=user.date_of_birth,
        country=user.country,
        disciplines=list(user.disciplines),
        years_of_experience=user.years_of_experience,
        goals=list(user.goals),
        belts=[belt.model_dump() for belt in user.belts] if user.belts is not None else None,
        onboarding_complete=True,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Concurrent user creation for %s: %s", external_id, exc.orig)
        if get_user_by_external_id(db, external_id):
            raise ConflictError("User already exists") from exc
        raise ConflictError("Username already taken") from exc
    db.refresh(db_user)
    return db_user


def merge_belts(current: Optional[list[dict]], updates: Iterable[BeltRank]) -> list[dict]:
    """Replace the entry of each updated discipline, keeping the others in place."""
    merged = [dict(entry) for entry in (current or [])]
    for belt in updates:
        payload = belt.model_dump()
        for index, entry in enumerate(merged):
            if entry.get("discipline") == belt.discipline:
                merged[index] = payload
                break
        else:
            merged.append(payload)
    return merged


def update_user_belts(db: Session, user: User, belts: Iterable[BeltRank]) -> User:
    # A new list is assigned so the JSON column is flagged as modified.
    user.belts = merge_belts(user.belts, belts)
    db.commit()
    db.refresh(user)
    return user
