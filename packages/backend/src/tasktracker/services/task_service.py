"""Task service — owner-scoped task CRUD.

Learn: Every method takes the *resolved* user id as its first argument
and filters on it. A task id on its own never reaches a row: a task that
doesn't exist and a task that belongs to someone else look the same to
the caller (None / False), so routes can answer both with one 404.

Task lifecycle:
  created (pending) ⇄ completed → deleted (terminal)
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.db.models import Task

logger = structlog.get_logger()


class TaskService:
    """Business logic for a single user's task list."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(self, user_id: uuid.UUID) -> list[Task]:
        """All of a user's tasks, newest first."""
        result = await self.db.execute(
            select(Task)
            .where(Task.user_id == user_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        return list(result.scalars().all())

    async def get_task(self, user_id: uuid.UUID, task_id: int) -> Optional[Task]:
        result = await self.db.execute(
            select(Task).where(Task.id == task_id, Task.user_id == user_id)
        )
        return result.scalars().first()

    # ─── Create ──────────────────────────────────────────

    async def create_task(self, user_id: uuid.UUID, title: str) -> Task:
        """Create a pending task. The caller has already rejected blank titles."""
        task = Task(user_id=user_id, title=title, completed=False)
        self.db.add(task)
        await self.db.commit()
        logger.info("tasks.created", task_id=task.id, user_id=str(user_id))
        return task

    # ─── Update ──────────────────────────────────────────

    async def set_completed(
        self,
        user_id: uuid.UUID,
        task_id: int,
        completed: bool,
    ) -> Optional[Task]:
        """Move a task between pending and completed.

        Concurrent writers are not coordinated here; the database applies
        them in order and the last commit wins.
        """
        task = await self.get_task(user_id, task_id)
        if not task:
            return None

        task.completed = completed
        await self.db.commit()
        logger.info(
            "tasks.toggled",
            task_id=task_id,
            user_id=str(user_id),
            completed=completed,
        )
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, user_id: uuid.UUID, task_id: int) -> bool:
        """Delete a task. Returns False if it is absent or not the user's."""
        task = await self.get_task(user_id, task_id)
        if not task:
            return False

        await self.db.delete(task)
        await self.db.commit()
        logger.info("tasks.deleted", task_id=task_id, user_id=str(user_id))
        return True
