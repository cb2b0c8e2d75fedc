import logging
import re
from urllib.parse import unquote

from typing import Generator, Iterable, Optional, Union

from fastapi import Depends, HTTPException, Request, WebSocket, status
from starlette.datastructures import State
from sqlalchemy.orm import Session
from jose import JWTError, ExpiredSignatureError

from app.db import session as db_session
from app.core import security
from app.core.security import Identity
from app.crud import user_crud
from app.models.user.user_model import User

log = logging.getLogger(__name__)

ScopeType = Union[Request, WebSocket]


def _get_state_container(scope: ScopeType | None) -> Optional[State]:
    """Return the mutable state object associated with the request/websocket."""

    if scope is None:
        return None

    state = getattr(scope, "state", None)
    if state is None:
        state = State()
        setattr(scope, "state", state)
    return state


def _resolve_scope(
    request: Request = None,  # type: ignore[assignment]
    websocket: WebSocket = None,  # type: ignore[assignment]
) -> ScopeType | None:
    """Return the current Request or WebSocket when used as a dependency."""

    return request or websocket


def get_db(
    scope: ScopeType | None = Depends(_resolve_scope),
) -> Generator[Session, None, None]:
    """Provide one SQLAlchemy session shared by every dependency of a request.

    The route handler and the identity dependencies both ask for a session.
    Handing out two independent sessions would detach the ``User`` loaded by
    ``get_current_user`` from the one the handler writes with, so the session
    is cached on ``request.state`` (or ``websocket.state``) with a reference
    counter and closed when the last dependency exits. Outside a request
    (scripts, tests) a private session is opened and closed.
    """

    if scope is None:
        db = db_session.SessionLocal()
        try:
            yield db
        finally:
            db.close()
        return

    state = _get_state_container(scope)
    db = getattr(state, "_db_session", None)
    if db is None:
        db = db_session.SessionLocal()
        setattr(state, "_db_session", db)
        setattr(state, "_db_refcount", 0)

    refcount = getattr(state, "_db_refcount", 0) + 1
    setattr(state, "_db_refcount", refcount)

    try:
        yield db
    finally:
        refcount = getattr(state, "_db_refcount", 1) - 1
        if refcount <= 0:
            try:
                db.close()
            finally:
                for attr in ("_db_session", "_db_refcount"):
                    if hasattr(state, attr):
                        delattr(state, attr)
        else:
            setattr(state, "_db_refcount", refcount)


def _normalize_token_value(raw_token: str | None) -> str | None:
    """Return a clean JWT string extracted from various transport formats.

    Tokens may reach the API through cookies, headers, or query parameters.
    Browsers can percent-encode cookie values (``Bearer%20…``) and some
    frontends send quoted strings. We normalise those cases and also accept
    case-insensitive ``Bearer`` prefixes.
    """

    if raw_token is None:
        return None

    token = raw_token.strip().strip('"').strip("'")
    if not token:
        return None

    # Convert percent-encoded sequences such as ``Bearer%20``.
    token = unquote(token)

    match = re.match(r"^(bearer|token)[\s,:]+(.+)$", token, flags=re.IGNORECASE)
    if match:
        token = match.group(2)
    else:
        parts = token.split()
        if len(parts) >= 2 and parts[0].lower().rstrip(",") in {"bearer", "token"}:
            token = parts[1]

    token = token.strip()
    return token or None


def _decode_identity(token: str) -> Identity:
    try:
        return security.decode_identity_token(token)
    except ExpiredSignatureError:
        log.warning("Token rejected: expired.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="token_expired")
    except (JWTError, ValueError, TypeError):
        log.warning("Token rejected: invalid or malformed.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )


def _identity_from_candidates(candidates: Iterable[str | None]) -> Optional[Identity]:
    """First candidate that verifies wins; ``None`` when no token was sent at all."""

    last_unauthorized_error: HTTPException | None = None

    for candidate in candidates:
        token = _normalize_token_value(candidate)
        if not token:
            continue

        try:
            return _decode_identity(token)
        except HTTPException as exc:
            last_unauthorized_error = exc

    if last_unauthorized_error is not None:
        raise last_unauthorized_error
    return None


def _request_token_candidates(request: Request) -> list[str | None]:
    return [
        request.headers.get("Authorization"),
        request.headers.get("X-Access-Token"),
        request.cookies.get("access_token"),
        request.query_params.get("access_token"),
    ]


def get_identity(request: Request) -> Optional[Identity]:
    """Verified identity of the caller, or ``None`` for an anonymous request.

    A token that is present but invalid or expired is an error (401), never
    silently downgraded to anonymous.
    """

    return _identity_from_candidates(_request_token_candidates(request))


def require_identity(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return identity


def get_optional_user(
    identity: Optional[Identity] = Depends(get_identity),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """The caller's user row; ``None`` when anonymous or not onboarded yet."""

    if identity is None:
        return None
    return user_crud.get_user_by_external_id(db, identity.subject)


def get_current_user(
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
) -> User:
    user = user_crud.get_user_by_external_id(db, identity.subject)
    if user is None:
        log.warning("No user row for identity %s.", identity.subject)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _iter_websocket_token_candidates(websocket: WebSocket) -> list[str | None]:
    """Collect potential JWT transport formats from a WebSocket handshake."""

    candidates: list[str | None] = [
        websocket.headers.get("Authorization"),
        websocket.headers.get("X-Access-Token"),
        websocket.cookies.get("access_token"),
        websocket.query_params.get("access_token"),
        websocket.query_params.get("token"),
    ]

    protocol_header = websocket.headers.get("sec-websocket-protocol")
    if protocol_header:
        protocols = [part.strip() for part in protocol_header.split(",") if part.strip()]

        if len(protocols) >= 2 and protocols[0].lower().rstrip(":") in {"bearer", "token"}:
            candidates.append(" ".join(protocols[:2]))

    return candidates


def get_optional_user_from_websocket(websocket: WebSocket, db: Session) -> Optional[User]:
    """Same resolution as HTTP requests; anonymous sockets are allowed."""

    identity = _identity_from_candidates(_iter_websocket_token_candidates(websocket))
    if identity is None:
        return None
    return user_crud.get_user_by_external_id(db, identity.subject)
