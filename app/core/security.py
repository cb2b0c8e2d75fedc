# Fichier: fightmeta/backend/app/core/security.py

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from jose import jwt
from passlib import exc as passlib_exc
from passlib.context import CryptContext

from app.core.config import settings

# --- Configuration de la Sécurité ---
DEV_TOKEN_ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """A verified identity assertion from the identity provider."""

    subject: str
    claims: dict[str, Any] = field(default_factory=dict)


def _verification_key() -> str:
    return settings.IDENTITY_JWT_KEY or settings.SECRET_KEY


# --- Fonctions Utilitaires ---
def create_access_token(
    subject: Union[str, Any],
    expires_delta: timedelta = None,
    extra_claims: Optional[dict[str, Any]] = None,
) -> str:
    """Issue an HS256 token for local development and tests.

    Production tokens come from the identity provider; this helper only exists
    so the API can be exercised without it.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {"exp": expire, "sub": str(subject)}
    if settings.IDENTITY_JWT_ISSUER:
        to_encode["iss"] = settings.IDENTITY_JWT_ISSUER
    if settings.IDENTITY_JWT_AUDIENCE:
        to_encode["aud"] = settings.IDENTITY_JWT_AUDIENCE
    if extra_claims:
        to_encode.update(extra_claims)
    return jwt.encode(to_encode, _verification_key(), algorithm=DEV_TOKEN_ALGORITHM)


def decode_identity_token(token: str) -> Identity:
    """Verify *token* and return the identity it asserts.

    Raises ``jose.JWTError`` (or ``ExpiredSignatureError``) on failure and
    ``ValueError`` when the token carries no subject.
    """
    audience = settings.IDENTITY_JWT_AUDIENCE
    claims = jwt.decode(
        token,
        _verification_key(),
        algorithms=settings.IDENTITY_JWT_ALGORITHMS,
        audience=audience,
        issuer=settings.IDENTITY_JWT_ISSUER,
        options={"verify_aud": audience is not None},
    )
    subject = claims.get("sub")
    if not subject:
        raise ValueError("token has no subject")
    return Identity(subject=str(subject), claims=claims)


def verify_password(plain_password: str | None, hashed_password: str | None) -> bool:
    """Check a back-office password against its bcrypt hash."""

    if not plain_password or not hashed_password:
        return False

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError, passlib_exc.PasslibError) as exc:
        logger.warning("Password verification failed: %s", exc)
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)
