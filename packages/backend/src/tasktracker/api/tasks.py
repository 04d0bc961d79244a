"""Task API routes — the dashboard's mutations.

Learn: Every handler takes the identity from require_identity, i.e. from
this request's own cookie. The body never carries a user id (and one sent
anyway is ignored by the schema). Update and delete answer 404 both when
the task doesn't exist and when it belongs to someone else, so a caller
can't probe for other users' task ids.

- GET    /tasks       → own tasks, newest first
- POST   /tasks       → create (400 on a blank title)
- PATCH  /tasks/{id}  → set completed
- DELETE /tasks/{id}  → delete (404 again on a second delete)
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.dependencies import require_identity
from tasktracker.db.engine import get_db
from tasktracker.errors import FieldValidationError
from tasktracker.schemas.task import TaskCreate, TaskRead, TaskToggle
from tasktracker.schemas.user import UserIdentity
from tasktracker.services.task_service import TaskService

router = APIRouter(prefix="/tasks")

_NOT_FOUND = "Task not found"


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    identity: UserIdentity = Depends(require_identity),
    svc: TaskService = Depends(_task_svc),
):
    return await svc.list_tasks(identity.id)


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    identity: UserIdentity = Depends(require_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Create a pending task for the signed-in user."""
    title = body.title.strip()
    if not title:
        raise FieldValidationError("title", "Task cannot be empty")
    return await svc.create_task(identity.id, title)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: int,
    body: TaskToggle,
    identity: UserIdentity = Depends(require_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Mark a task completed or pending."""
    task = await svc.set_completed(identity.id, task_id, body.completed)
    if not task:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return task


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: int,
    identity: UserIdentity = Depends(require_identity),
    svc: TaskService = Depends(_task_svc),
):
    if not await svc.delete_task(identity.id, task_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return Response(status_code=204)
