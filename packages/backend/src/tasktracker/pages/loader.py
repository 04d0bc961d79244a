"""Gated page loader for the dashboard.

Learn: A page load is a small pipeline with exactly two outcomes:

    cookies → resolve_session ─┬─ Unauthenticated → Redirect("/login")
                               └─ Authenticated   → tasks for *that* id
                                                    → DashboardProps

The task query uses the id from the verified session and nothing else
from the request. Store failures while loading tasks propagate to the
caller untouched; turning them into a login redirect would hide outages
behind a fake logout.
"""

import uuid
from dataclasses import dataclass
from typing import Mapping, Protocol, Union

from tasktracker.auth.session import Authenticated, UserLookup, resolve_session
from tasktracker.db.models import Task
from tasktracker.schemas.task import DashboardProps, TaskRead

LOGIN_PATH = "/login"


@dataclass(frozen=True)
class Redirect:
    location: str
    # Temporary so browsers and crawlers don't cache the login requirement.
    status_code: int = 302


class TaskLookup(Protocol):
    async def list_tasks(self, user_id: uuid.UUID) -> list[Task]: ...


async def load_dashboard(
    cookies: Mapping[str, str],
    users: UserLookup,
    tasks: TaskLookup,
) -> Union[Redirect, DashboardProps]:
    session = await resolve_session(cookies, users)
    if not isinstance(session, Authenticated):
        return Redirect(location=LOGIN_PATH)

    identity = session.identity
    rows = await tasks.list_tasks(identity.id)
    return DashboardProps.build(
        user=identity,
        tasks=[TaskRead.model_validate(row) for row in rows],
    )
