"""Pydantic schemas for tasks and the dashboard payload.

Learn: Separate schemas for create/update/read keep the API clean.
- TaskCreate: POST body (blank titles are rejected by the route with 400)
- TaskToggle: PATCH body, the new completion state
- TaskRead: what the API returns and what the page embeds
- DashboardProps: the gated page's full initial state
"""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from tasktracker.schemas.base import CamelModel
from tasktracker.schemas.user import UserIdentity


class TaskCreate(BaseModel):
    title: str = Field(default="", max_length=500)


class TaskToggle(BaseModel):
    completed: bool


class TaskRead(CamelModel):
    id: int
    title: str
    completed: bool
    user_id: uuid.UUID
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; everything is stored in UTC.
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class DashboardProps(CamelModel):
    user: UserIdentity
    tasks: list[TaskRead]
    pending_tasks: int
    completed_tasks: int

    @classmethod
    def build(cls, user: UserIdentity, tasks: list[TaskRead]) -> "DashboardProps":
        completed = sum(1 for t in tasks if t.completed)
        return cls(
            user=user,
            tasks=tasks,
            pending_tasks=len(tasks) - completed,
            completed_tasks=completed,
        )
