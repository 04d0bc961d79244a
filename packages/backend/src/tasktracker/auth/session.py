"""Session resolution — cookie → authenticated identity, or not.

Learn: This is the one gate every page and every API call goes through.
The result is an explicit tagged value rather than an exception so the
caller decides what "not signed in" means for it (redirect for pages,
401 for the API).

Rules:
1. No token cookie → Unauthenticated, and the database is never touched.
2. Bad signature, expired, malformed, wrong type → Unauthenticated. The
   reason is logged at debug level but never reaches the client, so an
   expired token looks exactly like a forged or missing one.
3. Valid token for a user that no longer exists → Unauthenticated.
4. Otherwise → Authenticated with the user's public projection.

Database errors are *not* caught: an outage must surface as a server
error, not masquerade as a logged-out visitor.
"""

import uuid
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Union

import structlog

from tasktracker.auth.jwt import TokenError, verify_token
from tasktracker.config import settings
from tasktracker.db.models import User
from tasktracker.schemas.user import UserIdentity

logger = structlog.get_logger()


@dataclass(frozen=True)
class Authenticated:
    identity: UserIdentity


@dataclass(frozen=True)
class Unauthenticated:
    pass


SessionResult = Union[Authenticated, Unauthenticated]

UNAUTHENTICATED = Unauthenticated()


class UserLookup(Protocol):
    async def get_user(self, user_id: uuid.UUID) -> Optional[User]: ...


def _user_id_from_token(token: str) -> Optional[uuid.UUID]:
    try:
        payload = verify_token(token)
        return uuid.UUID(str(payload["sub"]))
    except (TokenError, ValueError) as e:
        logger.debug("session.rejected", reason=str(e))
        return None


async def resolve_session(
    cookies: Mapping[str, str],
    users: UserLookup,
) -> SessionResult:
    """Resolve request cookies to the signed-in user. No side effects."""
    token = cookies.get(settings.cookie_name)
    if not token:
        return UNAUTHENTICATED

    user_id = _user_id_from_token(token)
    if user_id is None:
        return UNAUTHENTICATED

    user = await users.get_user(user_id)
    if not user:
        logger.debug("session.rejected", reason="user not found")
        return UNAUTHENTICATED

    return Authenticated(identity=UserIdentity.model_validate(user))
