"""Node subtype dispatch."""

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog

from parrotflow.exceptions import ConfigurationError
from parrotflow.executor.context import NodeExecutionContext
from parrotflow.executor.data import WorkflowNodeSpec

from .base import BaseNodeHandler, NodeSubtype, PassThroughNode
from .delay import DelayNode
from .email import SendEmailNode
from .task import CreateTaskNode
from .webhook import WebhookCallNode

if TYPE_CHECKING:
    from parrotflow.integrations.email import EmailSender
    from parrotflow.integrations.tasks import TaskCreator

logger = structlog.get_logger()


class NodeDispatcher:
    """Maps every ``NodeSubtype`` to exactly one handler."""

    def __init__(
        self,
        email_sender: "EmailSender",
        task_creator: "TaskCreator",
        webhook_timeout: Optional[float] = None,
        max_delay_ms: Optional[int] = None,
    ):
        handlers = [
            SendEmailNode(email_sender),
            CreateTaskNode(task_creator),
            WebhookCallNode(timeout_seconds=webhook_timeout),
            DelayNode(max_delay_ms=max_delay_ms),
            PassThroughNode(),
        ]
        self.handlers: Dict[NodeSubtype, BaseNodeHandler] = {
            handler.subtype: handler for handler in handlers
        }

        missing = set(NodeSubtype) - set(self.handlers)
        if missing:
            raise ConfigurationError(
                f"No handler registered for node subtypes: {sorted(s.value for s in missing)}"
            )

    def get_handler(self, subtype: Optional[str]) -> BaseNodeHandler:
        """Return the handler for a stored subtype string."""
        return self.handlers[NodeSubtype.parse(subtype)]

    async def dispatch(
        self,
        node: WorkflowNodeSpec,
        input_data: Any,
        context: NodeExecutionContext,
    ) -> Dict[str, Any]:
        """Run ``node`` with its subtype's handler."""
        handler = self.get_handler(node.node_subtype)
        logger.debug(
            "Dispatching node",
            node_id=node.id,
            node_subtype=node.node_subtype,
            handler=handler.display_name,
        )
        return await handler.execute(node, input_data, context)
