"""FastAPI auth dependencies.

Learn: Used as Depends() in route handlers. Each request resolves the
session cookie from scratch; nothing about "who is logged in" is carried
between requests or accepted from the request body.

- get_session: the tagged result, for pages that branch on it
- require_identity: the API guard — 401 when unauthenticated
"""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.session import Authenticated, SessionResult, resolve_session
from tasktracker.db.engine import get_db
from tasktracker.schemas.user import UserIdentity
from tasktracker.services.user_service import UserService


async def get_session(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SessionResult:
    return await resolve_session(request.cookies, UserService(db))


async def require_identity(
    session: SessionResult = Depends(get_session),
) -> UserIdentity:
    """Resolved identity (required — 401 if missing, invalid or expired).

    The detail is fixed so responses never hint at why a credential failed.
    """
    if not isinstance(session, Authenticated):
        raise HTTPException(status_code=401, detail="Authentication required")
    return session.identity
