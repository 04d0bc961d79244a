"""Dashboard state as JSON — the same payload the page embeds."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.db.engine import get_db
from tasktracker.pages.loader import Redirect, load_dashboard
from tasktracker.schemas.task import DashboardProps
from tasktracker.services.task_service import TaskService
from tasktracker.services.user_service import UserService

router = APIRouter()


@router.get("/dashboard", response_model=DashboardProps)
async def get_dashboard(request: Request, db: AsyncSession = Depends(get_db)):
    result = await load_dashboard(request.cookies, UserService(db), TaskService(db))
    if isinstance(result, Redirect):
        raise HTTPException(status_code=401, detail="Authentication required")
    return result
