"""Auth API — registration, login, logout, current user.

Learn: These are the JSON counterparts of the /login and /register
pages, used by the CLI client. Successful register/login set the same
HttpOnly session cookie the pages do; the token is never put in the
response body.

- POST /auth/register → create account, set cookie
- POST /auth/login    → email/password, set cookie
- POST /auth/logout   → clear cookie
- GET  /auth/me       → resolved identity
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.cookies import clear_session_cookie, set_session_cookie
from tasktracker.auth.dependencies import require_identity
from tasktracker.db.engine import get_db
from tasktracker.errors import EmailTakenError
from tasktracker.schemas.user import LoginRequest, RegisterRequest, UserIdentity
from tasktracker.services.user_service import UserService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=UserIdentity, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Create a new account and sign it in."""
    try:
        user = await UserService(db).create_user(body.name, body.email, body.password)
    except EmailTakenError:
        raise HTTPException(status_code=409, detail="Email already registered")

    set_session_cookie(response, str(user.id))
    return user


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=UserIdentity)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Login with email and password → session cookie."""
    user = await UserService(db).authenticate(body.email, body.password)
    if not user:
        logger.info("auth.login_failed", via="api")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    logger.info("auth.login", user_id=str(user.id), via="api")
    set_session_cookie(response, str(user.id))
    return user


# ─── Logout ──────────────────────────────────────────────


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie.

    No identity check: the server keeps no session state, so logging out
    only has to make the browser forget the token.
    """
    clear_session_cookie(response)
    return {"logged_out": True}


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserIdentity)
async def get_me(identity: UserIdentity = Depends(require_identity)):
    return identity
