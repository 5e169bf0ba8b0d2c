"""Task creation used by the ``create_task`` node."""

from typing import Any, Dict, Optional, Protocol

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parrotflow.executor.errors import normalize_error

from .models import Task, TaskActivity

logger = structlog.get_logger()

TASK_FIELDS = (
    "title",
    "description",
    "status",
    "priority",
    "project_id",
    "assigned_to",
    "due_date",
    "estimated_hours",
    "actual_hours",
    "position",
)


class TaskCreator(Protocol):
    """Contract consumed by the ``create_task`` node."""

    async def create_task(self, task_fields: Dict[str, Any], user_id: str) -> Optional[Dict[str, Any]]:
        ...


class SqlTaskCreator:
    """Inserts tasks and their ``created`` activity entry."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def create_task(self, task_fields: Dict[str, Any], user_id: str) -> Optional[Dict[str, Any]]:
        """Create a task; returns ``None`` when nothing was stored.

        Database failures are raised as ``DataLayerError``.
        """
        values = {name: task_fields.get(name) for name in TASK_FIELDS if name in task_fields}
        if not values.get("title"):
            return None

        task = Task(**values, created_by=user_id or None)
        try:
            self.db_session.add(task)
            await self.db_session.flush()
            self.db_session.add(
                TaskActivity(
                    task_id=task.id,
                    user_id=user_id or None,
                    action="created",
                    new_value={"title": task.title, "status": task.status},
                )
            )
            await self.db_session.commit()
            await self.db_session.refresh(task)
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            error = normalize_error(e)
            logger.error("Task creation failed", error=error.message, kind=error.kind.value)
            raise error from e

        logger.info("Task created", task_id=task.id, created_by=user_id)
        return task.to_dict()
