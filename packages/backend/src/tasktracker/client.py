"""Async HTTP client mirroring the dashboard's behaviour.

Learn: This is the programmatic twin of static/dashboard.js, used by the
CLI. It keeps the same local state the page does and follows the same
rules:

- One request per action. While a task's request is in flight its entry
  in ``request_status`` is PENDING and a second action on the same task
  is refused locally (RequestInFlight) instead of being sent.
- On any failed mutation the previous ``tasks`` list is kept unchanged
  and ``error`` holds one message for display.
- Delete and logout take a ``confirm`` callable and send nothing unless
  it returns True.
- Every request has an explicit timeout, reported as RequestTimeout so
  callers can tell "slow" from "down" (UpstreamFailure).

The session cookie lives in the httpx cookie jar; ``token`` exposes it
so the CLI can persist it between invocations.
"""

from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, Callable, Optional

import httpx
import structlog

from tasktracker.config import settings

logger = structlog.get_logger()

Confirm = Callable[[str], bool]


# ═══════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════


class ClientError(Exception):
    """Base class for failures surfaced to the user."""


class Unauthenticated(ClientError):
    """No valid session — sign in again."""


class NotFoundOrForbidden(ClientError):
    """The task doesn't exist or isn't yours."""


class ValidationError(ClientError):
    """A field was rejected; ``field`` names it when known."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UpstreamFailure(ClientError):
    """Server or network failure. Safe to retry."""


class RequestTimeout(ClientError):
    """No response within the client timeout. Safe to retry."""


class RequestInFlight(ClientError):
    """The same control already has a request outstanding."""


class RequestStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


def _detail(response: httpx.Response) -> tuple[Optional[str], Optional[str]]:
    try:
        data = response.json()
    except ValueError:
        return None, None
    if not isinstance(data, dict):
        return None, None
    detail = data.get("detail")
    return (detail if isinstance(detail, str) else None), data.get("field")


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    status = response.status_code
    detail, field = _detail(response)
    if status == 401:
        raise Unauthenticated("Please log in")
    if status == 404:
        raise NotFoundOrForbidden("Task not found")
    if status == 409:
        raise ValidationError(detail or "Conflict", field="email")
    if status in (400, 422):
        raise ValidationError(detail or "Invalid input", field=field)
    raise UpstreamFailure("Something went wrong, please try again")


# ═══════════════════════════════════════════════════════════
# Client
# ═══════════════════════════════════════════════════════════


class DashboardClient:
    """Stateful client for one signed-in (or signing-in) user."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout if timeout is not None else settings.client_timeout_seconds,
            transport=transport,
        )
        if token:
            self._http.cookies.set(settings.cookie_name, token)

        self.user: Optional[dict[str, Any]] = None
        self.tasks: list[dict[str, Any]] = []
        self.error: Optional[str] = None
        self.request_status: dict[int, RequestStatus] = {}
        self._adding = False

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ─── State ───────────────────────────────────────────

    @property
    def token(self) -> Optional[str]:
        return self._http.cookies.get(settings.cookie_name)

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self.tasks if t["completed"])

    @property
    def pending_count(self) -> int:
        return len(self.tasks) - self.completed_count

    def status_of(self, task_id: int) -> RequestStatus:
        return self.request_status.get(task_id, RequestStatus.IDLE)

    # ─── Transport ───────────────────────────────────────

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException:
            logger.warning("client.timeout", method=method, url=url)
            raise RequestTimeout("The request timed out, please try again")
        except httpx.TransportError as e:
            logger.warning("client.transport_error", method=method, url=url, error=str(e))
            raise UpstreamFailure("Network error, please try again")
        _raise_for_status(response)
        return response

    async def _mutate(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a mutation; on failure record the error and leave state alone."""
        try:
            response = await self._request(method, url, **kwargs)
        except ClientError as e:
            self.error = str(e)
            raise
        self.error = None
        return response

    # ─── Session ─────────────────────────────────────────

    async def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        self._http.cookies.clear()
        response = await self._mutate(
            "POST",
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        self.user = response.json()
        return self.user

    async def login(self, email: str, password: str) -> dict[str, Any]:
        self._http.cookies.clear()
        try:
            response = await self._mutate(
                "POST", "/api/auth/login", json={"email": email, "password": password}
            )
        except Unauthenticated:
            self.error = "Invalid email or password"
            raise ValidationError(self.error)
        self.user = response.json()
        return self.user

    async def logout(self, confirm: Confirm) -> bool:
        """Log out after confirmation. Returns False if the user declined."""
        if not confirm("Are you sure you want to log out?"):
            return False
        await self._mutate("POST", "/api/auth/logout")
        self._http.cookies.clear()
        self.user = None
        self.tasks = []
        return True

    async def load(self) -> dict[str, Any]:
        """Fetch the dashboard state (user, tasks, counts)."""
        response = await self._request("GET", "/api/dashboard")
        props = response.json()
        self.user = props["user"]
        self.tasks = props["tasks"]
        return props

    # ─── Tasks ───────────────────────────────────────────

    async def add_task(self, title: str) -> dict[str, Any]:
        if not title.strip():
            self.error = "Task cannot be empty"
            raise ValidationError(self.error, field="title")
        if self._adding:
            raise RequestInFlight("A task is already being added")

        self._adding = True
        try:
            response = await self._mutate("POST", "/api/tasks", json={"title": title})
        finally:
            self._adding = False

        task = response.json()
        self.tasks = [task, *self.tasks]
        return task

    async def toggle_task(self, task_id: int) -> dict[str, Any]:
        current = next((t for t in self.tasks if t["id"] == task_id), None)
        if current is None:
            raise NotFoundOrForbidden("Task not found")

        async with self._pending(task_id):
            response = await self._mutate(
                "PATCH",
                f"/api/tasks/{task_id}",
                json={"completed": not current["completed"]},
            )

        updated = response.json()
        self.tasks = [updated if t["id"] == task_id else t for t in self.tasks]
        return updated

    async def delete_task(self, task_id: int, confirm: Confirm) -> bool:
        """Delete after confirmation. Returns False if the user declined."""
        if not confirm("Are you sure you want to delete this task?"):
            return False

        async with self._pending(task_id):
            await self._mutate("DELETE", f"/api/tasks/{task_id}")

        self.tasks = [t for t in self.tasks if t["id"] != task_id]
        self.request_status.pop(task_id, None)
        return True

    @asynccontextmanager
    async def _pending(self, task_id: int):
        """Mark a task PENDING for the duration of one request."""
        if self.status_of(task_id) == RequestStatus.PENDING:
            raise RequestInFlight("This task already has a request in progress")
        self.request_status[task_id] = RequestStatus.PENDING
        try:
            yield
        finally:
            self.request_status[task_id] = RequestStatus.IDLE

    # ─── Profile ─────────────────────────────────────────

    async def update_profile(
        self,
        name: str,
        email: str,
        password: Optional[str] = None,
        avatar: Optional[tuple[str, bytes, str]] = None,
    ) -> dict[str, Any]:
        """Submit a profile edit. ``avatar`` is (filename, content, content_type)."""
        data = {"name": name, "email": email}
        if password:
            data["password"] = password
        files = {"avatar": avatar} if avatar else None

        # Without a file httpx sends a urlencoded form, which the form endpoint also accepts.
        response = await self._mutate("PUT", "/api/profile", data=data, files=files)
        self.user = response.json()
        return self.user

