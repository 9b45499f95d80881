"""
Authentication tests: header parsing, the AuthResolver failure kinds,
and the uniform 401 every kind produces at the HTTP boundary.
"""
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthResolver, parse_authorization
from app.exceptions import (
    InvalidTokenError,
    MalformedCredentialError,
    NoCredentialError,
    UnknownSubjectError,
)
from app.models import User
from app.security import TokenService, token_service
from app.stores import UserStore


async def _create_user(db: AsyncSession, username: str = "authuser") -> User:
    user = User(username=username, email=f"{username}@example.com", password="x", bio="", image="")
    db.add(user)
    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Header parsing
# ---------------------------------------------------------------------------

def test_parse_authorization_returns_token():
    assert parse_authorization("Token abc.def.ghi") == "abc.def.ghi"


@pytest.mark.parametrize("header", [None, ""])
def test_parse_authorization_missing(header):
    with pytest.raises(NoCredentialError):
        parse_authorization(header)


@pytest.mark.parametrize("header", [
    "Bearer xyz",
    "token xyz",
    "Token",
    "Token ",
    "Token  xyz",
    "Token xyz extra",
    "InvalidToken123",
])
def test_parse_authorization_malformed(header):
    with pytest.raises(MalformedCredentialError):
        parse_authorization(header)


# ---------------------------------------------------------------------------
# AuthResolver
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_resolve_success(db_session: AsyncSession):
    user = await _create_user(db_session)
    token = token_service.create_token(user.id)

    principal = await AuthResolver(UserStore(db_session)).resolve(f"Token {token}")

    assert principal.id == user.id
    assert principal.user.username == "authuser"
    assert principal.token == token


@pytest.mark.asyncio
async def test_resolve_invalid_token(db_session: AsyncSession):
    with pytest.raises(InvalidTokenError):
        await AuthResolver(UserStore(db_session)).resolve("Token not-a-jwt")


@pytest.mark.asyncio
async def test_resolve_token_signed_with_other_key(db_session: AsyncSession):
    user = await _create_user(db_session)
    foreign = TokenService(secret_key="another-secret-that-is-at-least-32-bytes").create_token(user.id)
    with pytest.raises(InvalidTokenError):
        await AuthResolver(UserStore(db_session)).resolve(f"Token {foreign}")


@pytest.mark.asyncio
async def test_resolve_expired_token(db_session: AsyncSession):
    user = await _create_user(db_session)
    expired = TokenService(expire_minutes=-1).create_token(user.id)
    with pytest.raises(InvalidTokenError):
        await AuthResolver(UserStore(db_session)).resolve(f"Token {expired}")


@pytest.mark.asyncio
async def test_resolve_unknown_subject(db_session: AsyncSession):
    token = token_service.create_token(str(uuid.uuid4()))
    with pytest.raises(UnknownSubjectError):
        await AuthResolver(UserStore(db_session)).resolve(f"Token {token}")


@pytest.mark.asyncio
async def test_try_resolve_without_header_is_anonymous(db_session: AsyncSession):
    assert await AuthResolver(UserStore(db_session)).try_resolve(None) is None
    assert await AuthResolver(UserStore(db_session)).try_resolve("") is None


@pytest.mark.asyncio
async def test_try_resolve_still_rejects_bad_header(db_session: AsyncSession):
    resolver = AuthResolver(UserStore(db_session))
    with pytest.raises(MalformedCredentialError):
        await resolver.try_resolve("Bearer xyz")
    with pytest.raises(InvalidTokenError):
        await resolver.try_resolve("Token garbage")


def test_failure_kinds_are_distinct():
    kinds = {
        NoCredentialError.kind,
        MalformedCredentialError.kind,
        InvalidTokenError.kind,
        UnknownSubjectError.kind,
    }
    assert len(kinds) == 4


# ---------------------------------------------------------------------------
# HTTP boundary
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": ""},
    {"Authorization": "Token"},
    {"Authorization": "Bearer xyz"},
    {"Authorization": "Token invalidtoken"},
])
async def test_get_user_unauthenticated(async_client: AsyncClient, headers: dict):
    resp = await async_client.get("/user", headers=headers)
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Token"


@pytest.mark.asyncio
async def test_unknown_subject_returns_401(async_client: AsyncClient):
    token = token_service.create_token(str(uuid.uuid4()))
    resp = await async_client.get("/user", headers={"Authorization": f"Token {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_401_body_does_not_reveal_failure_kind(async_client: AsyncClient):
    """Every failure kind yields byte-identical 401 bodies."""
    unknown = token_service.create_token(str(uuid.uuid4()))
    bodies = []
    for headers in ({}, {"Authorization": "Bearer xyz"}, {"Authorization": "Token junk"},
                    {"Authorization": f"Token {unknown}"}):
        resp = await async_client.get("/user", headers=headers)
        assert resp.status_code == 401
        bodies.append(resp.json())
    assert all(body == bodies[0] for body in bodies)


@pytest.mark.asyncio
async def test_protected_endpoints_require_auth(async_client: AsyncClient, register_user):
    await register_user("target")
    for method, path in [
        ("PUT", "/user"),
        ("POST", "/profiles/target/follow"),
        ("DELETE", "/profiles/target/follow"),
        ("POST", "/articles/any-slug/bookmark"),
        ("DELETE", "/articles/any-slug/bookmark"),
    ]:
        resp = await async_client.request(method, path, json={"user": {}})
        assert resp.status_code == 401, f"{method} {path} -> {resp.status_code}"
