"""Session resolver tests — cookie → Authenticated / Unauthenticated.

Learn: These run against a fake user store that counts lookups, so we
can assert not just the outcome but that a missing or bad token never
touches the database.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy.exc import OperationalError

from tasktracker.auth.jwt import create_access_token
from tasktracker.auth.session import (
    UNAUTHENTICATED,
    Authenticated,
    Unauthenticated,
    resolve_session,
)
from tasktracker.config import settings

from fakes import FakeUsers, make_user


def cookies(token):
    return {settings.cookie_name: token}


# ═══════════════════════════════════════════════════════════
# No / bad credential
# ═══════════════════════════════════════════════════════════


async def test_missing_cookie_skips_store():
    users = FakeUsers()
    assert await resolve_session({}, users) == UNAUTHENTICATED
    assert users.calls == 0


async def test_empty_cookie_skips_store():
    users = FakeUsers()
    assert await resolve_session(cookies(""), users) == UNAUTHENTICATED
    assert users.calls == 0


async def test_other_cookies_are_ignored():
    users = FakeUsers()
    result = await resolve_session({"session": "abc", "theme": "dark"}, users)
    assert isinstance(result, Unauthenticated)
    assert users.calls == 0


@pytest.mark.parametrize(
    "token_factory",
    [
        pytest.param(lambda uid: "not.a.jwt", id="malformed"),
        pytest.param(lambda uid: create_access_token(uid, expires_minutes=-5), id="expired"),
        pytest.param(
            lambda uid: jwt.encode(
                {"sub": uid, "type": "access",
                 "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
                "some-other-secret",
                algorithm="HS256",
            ),
            id="wrong-signature",
        ),
        pytest.param(
            lambda uid: jwt.encode(
                {"sub": uid, "type": "refresh",
                 "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
                settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
            ),
            id="wrong-type",
        ),
        pytest.param(lambda uid: create_access_token("not-a-uuid"), id="bad-subject"),
        pytest.param(
            lambda uid: jwt.encode(
                {"sub": uid, "type": "access"},
                settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
            ),
            id="no-expiry",
        ),
    ],
)
async def test_invalid_tokens_look_like_no_token(token_factory):
    """Every verification failure yields the same bare Unauthenticated."""
    user = make_user()
    users = FakeUsers(user)

    result = await resolve_session(cookies(token_factory(str(user.id))), users)

    assert result == await resolve_session({}, users)
    assert users.calls == 0


async def test_deleted_user_is_unauthenticated():
    users = FakeUsers()  # token is valid but nobody has that id anymore
    token = create_access_token(str(uuid.uuid4()))

    result = await resolve_session(cookies(token), users)

    assert result == UNAUTHENTICATED
    assert users.calls == 1


# ═══════════════════════════════════════════════════════════
# Valid credential
# ═══════════════════════════════════════════════════════════


async def test_valid_token_resolves_identity_with_one_lookup():
    user = make_user(avatar_url="/media/avatars/a.png")
    users = FakeUsers(user)

    result = await resolve_session(cookies(create_access_token(str(user.id))), users)

    assert isinstance(result, Authenticated)
    assert result.identity.id == user.id
    assert result.identity.name == "Ada Lovelace"
    assert result.identity.avatar_url == "/media/avatars/a.png"
    assert users.calls == 1


async def test_identity_never_carries_password_hash():
    user = make_user()
    result = await resolve_session(
        cookies(create_access_token(str(user.id))), FakeUsers(user)
    )
    dumped = result.identity.model_dump(by_alias=True)
    assert set(dumped) == {"id", "name", "email", "avatarUrl"}


async def test_store_failure_propagates():
    """An outage must not be mistaken for a logged-out visitor."""
    user = make_user()
    users = FakeUsers(error=OperationalError("SELECT", {}, Exception("db down")))

    with pytest.raises(OperationalError):
        await resolve_session(cookies(create_access_token(str(user.id))), users)
