"""FastAPI dependencies wiring the executor to its collaborators."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from parrotflow.config import settings
from parrotflow.database_deps import get_db
from parrotflow.executor import WorkflowExecutor
from parrotflow.integrations import EmailSender, SmtpEmailSender, SqlTaskCreator, TaskCreator
from parrotflow.nodes import NodeDispatcher

from .service import AutomationService


def get_email_sender() -> EmailSender:
    """Get email sender instance."""
    return SmtpEmailSender(settings)


def get_task_creator(db: AsyncSession = Depends(get_db)) -> TaskCreator:
    """Get task creator bound to the request session."""
    return SqlTaskCreator(db)


def get_workflow_executor(
    email_sender: EmailSender = Depends(get_email_sender),
    task_creator: TaskCreator = Depends(get_task_creator),
) -> WorkflowExecutor:
    """Get workflow executor with every node handler registered."""
    dispatcher = NodeDispatcher(
        email_sender=email_sender,
        task_creator=task_creator,
        webhook_timeout=settings.webhook_call_timeout,
        max_delay_ms=settings.automation_max_delay_ms,
    )
    return WorkflowExecutor(dispatcher)


def get_automation_service(
    db: AsyncSession = Depends(get_db),
    executor: WorkflowExecutor = Depends(get_workflow_executor),
) -> AutomationService:
    """Get automation service instance."""
    return AutomationService(db, executor)
