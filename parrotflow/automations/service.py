"""Automation service: loading, access checks and recorded runs."""

import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from parrotflow.auth.models import User
from parrotflow.executor import (
    WorkflowConnectionSpec,
    WorkflowExecutor,
    WorkflowNodeSpec,
    WorkflowResult,
    normalize_error,
)
from parrotflow.metrics import AUTOMATION_RUN_DURATION, AUTOMATION_RUNS

from .exceptions import AutomationRunError, ExecutionRecordError
from .models import Automation, AutomationExecution, ExecutionStatus, TriggerType

logger = structlog.get_logger()


class AutomationService:
    """Data access and run bookkeeping around the workflow executor."""

    def __init__(self, db_session: AsyncSession, executor: Optional[WorkflowExecutor] = None):
        self.db_session = db_session
        self.executor = executor
        self.logger = logger.bind(component="automation_service")

    def _with_graph(self):
        return select(Automation).options(
            selectinload(Automation.nodes),
            selectinload(Automation.connections),
        )

    async def get_active_automation(self, automation_id: str) -> Optional[Automation]:
        """Load an active automation with its nodes and connections."""
        result = await self.db_session.execute(
            self._with_graph().where(
                Automation.id == automation_id,
                Automation.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def get_owned_automation(self, automation_id: str, user_id: str) -> Optional[Automation]:
        """Load an automation only if ``user_id`` owns it."""
        result = await self.db_session.execute(
            select(Automation).where(
                Automation.id == automation_id,
                Automation.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_webhook_token(self, token: str) -> Optional[Automation]:
        """Find the active webhook-triggered automation owning ``token``."""
        result = await self.db_session.execute(
            self._with_graph().where(
                Automation.trigger_type == TriggerType.WEBHOOK.value,
                Automation.is_active.is_(True),
            )
        )
        for automation in result.scalars():
            if automation.webhook_token == token:
                return automation
        return None

    @staticmethod
    def can_access(automation: Automation, user: User) -> bool:
        """Owner, member of the automation's space, or an administrator."""
        return (
            automation.user_id == user.id
            or bool(automation.space_id and user.company_id == automation.space_id)
            or user.is_admin
        )

    async def ensure_webhook_token(self, automation: Automation) -> str:
        """Return the automation's webhook token, generating one if needed."""
        existing = automation.webhook_token
        if existing:
            return existing

        token = str(uuid4())
        # Reassign so the JSON column is flagged dirty
        automation.trigger_config = {**(automation.trigger_config or {}), "webhook_token": token}
        await self.db_session.commit()

        self.logger.info("Generated webhook token", automation_id=automation.id)
        return token

    async def execute(
        self,
        automation: Automation,
        trigger_data: Any,
        user_id: Optional[str] = None,
        space_id: Optional[str] = None,
    ) -> Tuple[str, WorkflowResult]:
        """Run an automation and persist the execution record and statistics.

        Returns the execution id together with the workflow result.

        Raises:
            ExecutionRecordError: the record could not be created; nothing ran.
            AutomationRunError: the run raised; record and statistics already
                reflect the failure.
        """
        if self.executor is None:
            raise RuntimeError("AutomationService was created without an executor")

        automation_id = automation.id
        nodes = [WorkflowNodeSpec.model_validate(node) for node in automation.nodes]
        connections = [WorkflowConnectionSpec.model_validate(conn) for conn in automation.connections]
        snapshot = {
            "nodes": [node.to_dict() for node in automation.nodes],
            "connections": [conn.to_dict() for conn in automation.connections],
        }

        execution_id = await self._create_execution(automation_id, trigger_data, snapshot)
        started = time.monotonic()

        try:
            result = await self.executor.execute_workflow(
                nodes,
                connections,
                trigger_data,
                user_id=user_id,
                space_id=space_id,
            )
        except Exception as e:
            message = str(e) or "Execution failed"
            self.logger.error(
                "Automation run failed",
                automation_id=automation_id,
                execution_id=execution_id,
                error=message,
                exc_info=True,
            )
            await self._finish_execution(
                automation_id, execution_id, snapshot, started, success=False, error=message
            )
            raise AutomationRunError(message, execution_id=execution_id) from e

        await self._finish_execution(
            automation_id,
            execution_id,
            {**snapshot, "result": result.to_dict()},
            started,
            success=result.success,
            error=result.error,
        )
        return execution_id, result

    async def _create_execution(
        self, automation_id: str, trigger_data: Any, snapshot: Dict[str, Any]
    ) -> str:
        execution = AutomationExecution(
            automation_id=automation_id,
            trigger_data=trigger_data,
            status=ExecutionStatus.RUNNING.value,
            started_at=datetime.now(timezone.utc),
            execution_data=snapshot,
        )
        try:
            self.db_session.add(execution)
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            error = normalize_error(e)
            self.logger.error(
                "Failed to create execution record",
                automation_id=automation_id,
                error=error.message,
                kind=error.kind.value,
            )
            raise ExecutionRecordError("Failed to create execution record") from e

        self.logger.info("Execution started", automation_id=automation_id, execution_id=execution.id)
        return execution.id

    async def _finish_execution(
        self,
        automation_id: str,
        execution_id: str,
        execution_data: Dict[str, Any],
        started: float,
        success: bool,
        error: Optional[str] = None,
    ) -> None:
        # Plain UPDATEs: nodes may have rolled the session back mid-run, which
        # expires every loaded instance.
        finished_at = datetime.now(timezone.utc)
        elapsed = time.monotonic() - started
        execution_time_ms = int(elapsed * 1000)
        status = ExecutionStatus.COMPLETED if success else ExecutionStatus.FAILED

        counter = Automation.success_count if success else Automation.failure_count
        await self.db_session.execute(
            update(AutomationExecution)
            .where(AutomationExecution.id == execution_id)
            .values(
                status=status.value,
                completed_at=finished_at,
                execution_time_ms=execution_time_ms,
                error_message=error,
                execution_data=execution_data,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db_session.execute(
            update(Automation)
            .where(Automation.id == automation_id)
            .values(
                {
                    Automation.last_run_at: finished_at,
                    Automation.run_count: Automation.run_count + 1,
                    counter: counter + 1,
                }
            )
            .execution_options(synchronize_session=False)
        )
        await self.db_session.commit()

        AUTOMATION_RUNS.labels(status=status.value).inc()
        AUTOMATION_RUN_DURATION.observe(elapsed)
        self.logger.info(
            "Execution finished",
            automation_id=automation_id,
            execution_id=execution_id,
            status=status.value,
            execution_time_ms=execution_time_ms,
        )
