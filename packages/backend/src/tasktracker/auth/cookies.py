"""Session cookie helpers.

The cookie is HttpOnly, scoped to "/", SameSite=Lax, and lives exactly
as long as the token inside it. Logging out overwrites it with an
already-expired one.
"""

from datetime import datetime, timezone

from starlette.responses import Response

from tasktracker.auth.jwt import create_access_token
from tasktracker.config import settings

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def set_session_cookie(response: Response, user_id: str) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=create_access_token(user_id),
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value="",
        max_age=0,
        expires=EPOCH,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
