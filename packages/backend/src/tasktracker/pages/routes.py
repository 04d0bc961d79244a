"""Server-rendered pages: landing, login, register, dashboard.

Learn: Pages use Jinja2 templates. Login and register are plain HTML
form posts that answer with 303 → /dashboard and the session cookie, so
they work without JavaScript. The dashboard embeds its initial state as
JSON; static/dashboard.js takes over from there and talks to /api/*.
"""

from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.cookies import set_session_cookie
from tasktracker.config import settings
from tasktracker.db.engine import get_db
from tasktracker.errors import EmailTakenError, FieldValidationError
from tasktracker.pages.loader import Redirect, load_dashboard
from tasktracker.services.task_service import TaskService
from tasktracker.services.user_service import UserService

logger = structlog.get_logger()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(default_response_class=HTMLResponse)

DASHBOARD_PATH = "/dashboard"


def _to_dashboard(user_id: str) -> RedirectResponse:
    response = RedirectResponse(DASHBOARD_PATH, status_code=303)
    set_session_cookie(response, user_id)
    return response


# ─── Landing ────────────────────────────────────────────


@router.get("/")
async def landing(request: Request):
    return templates.TemplateResponse(request, "index.html")


# ─── Login ──────────────────────────────────────────────


@router.get("/login")
async def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", {"email": ""})


@router.post("/login")
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).authenticate(email, password)
    if not user:
        logger.info("auth.login_failed", via="form")
        return templates.TemplateResponse(
            request,
            "login.html",
            {"email": email, "error": "Invalid email or password"},
            status_code=401,
        )
    logger.info("auth.login", user_id=str(user.id), via="form")
    return _to_dashboard(str(user.id))


# ─── Register ───────────────────────────────────────────


@router.get("/register")
async def register_page(request: Request):
    return templates.TemplateResponse(request, "register.html", {"name": "", "email": ""})


@router.post("/register")
async def register_submit(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    form = {"name": name, "email": email}
    try:
        user = await UserService(db).create_user(name, email, password)
    except FieldValidationError as e:
        return templates.TemplateResponse(
            request,
            "register.html",
            {**form, "error": e.message, "field": e.field},
            status_code=400,
        )
    except EmailTakenError:
        return templates.TemplateResponse(
            request,
            "register.html",
            {**form, "error": "Email already registered", "field": "email"},
            status_code=409,
        )
    return _to_dashboard(str(user.id))


# ─── Dashboard (gated) ──────────────────────────────────


@router.get(DASHBOARD_PATH)
async def dashboard(request: Request, db: AsyncSession = Depends(get_db)):
    result = await load_dashboard(request.cookies, UserService(db), TaskService(db))
    if isinstance(result, Redirect):
        return RedirectResponse(result.location, status_code=result.status_code)

    response = templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "props": result,
            "initial_state": result.model_dump(mode="json", by_alias=True),
            "timeout_ms": int(settings.client_timeout_seconds * 1000),
        },
    )
    response.headers["Cache-Control"] = "no-store"
    return response
