from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import ExpiredSignatureError
from starlette.requests import Request

from app.api.v2.dependencies import (
    _normalize_token_value,
    get_current_user,
    get_identity,
    get_optional_user,
    require_identity,
)
from app.core import security
from tests.utils import bearer, create_user


def _request(headers: dict[str, str] | None = None, query: str = "") -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": raw_headers,
        "query_string": query.encode(),
    }
    return Request(scope)


def test_token_round_trip_carries_subject():
    token = security.create_access_token("user_abc")
    identity = security.decode_identity_token(token)
    assert identity.subject == "user_abc"
    assert identity.claims["sub"] == "user_abc"


def test_expired_token_is_rejected():
    token = security.create_access_token("user_abc", expires_delta=timedelta(seconds=-5))
    with pytest.raises(ExpiredSignatureError):
        security.decode_identity_token(token)


def test_password_hash_verification():
    hashed = security.get_password_hash("hunter2")
    assert security.verify_password("hunter2", hashed)
    assert not security.verify_password("wrong", hashed)
    assert not security.verify_password("hunter2", None)


@pytest.mark.parametrize(
    "raw",
    ["Bearer abc.def.ghi", "bearer%20abc.def.ghi", '"abc.def.ghi"', "Token: abc.def.ghi"],
)
def test_normalize_token_value(raw):
    assert _normalize_token_value(raw) == "abc.def.ghi"


def test_missing_token_is_anonymous():
    assert get_identity(_request()) is None


def test_identity_from_authorization_header():
    identity = get_identity(_request({"Authorization": bearer("user_abc")}))
    assert identity.subject == "user_abc"


def test_identity_from_query_parameter():
    token = security.create_access_token("user_q")
    identity = get_identity(_request(query=f"access_token={token}"))
    assert identity.subject == "user_q"


def test_invalid_token_is_unauthorized():
    with pytest.raises(HTTPException) as exc:
        get_identity(_request({"Authorization": "Bearer not-a-jwt"}))
    assert exc.value.status_code == 401


def test_require_identity_rejects_anonymous():
    with pytest.raises(HTTPException) as exc:
        require_identity(None)
    assert exc.value.status_code == 401
    assert exc.value.detail == "Not authenticated"


def test_user_resolution(db_session):
    user = create_user(db_session, username="ana", external_id="user_ana")
    identity = security.Identity(subject="user_ana")

    assert get_optional_user(identity, db_session).id == user.id
    assert get_optional_user(None, db_session) is None
    assert get_current_user(identity, db_session).id == user.id


def test_current_user_without_row_is_not_found(db_session):
    with pytest.raises(HTTPException) as exc:
        get_current_user(security.Identity(subject="user_ghost"), db_session)
    assert exc.value.status_code == 404
    assert exc.value.detail == "User not found"
