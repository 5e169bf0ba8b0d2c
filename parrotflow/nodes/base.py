"""Base node handler classes."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from parrotflow.executor.context import NodeExecutionContext
from parrotflow.executor.data import WorkflowNodeSpec

logger = structlog.get_logger()


class NodeSubtype(str, Enum):
    """Behaviour selector stored on each automation node."""
    SEND_EMAIL = "send_email"
    CREATE_TASK = "create_task"
    WEBHOOK_CALL = "webhook_call"
    DELAY = "delay"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "NodeSubtype":
        """Map a stored subtype string to a member, defaulting to ``UNKNOWN``."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class BaseNodeHandler(ABC):
    """Executes one node subtype.

    Handlers never raise: failures are reported as
    ``{"success": False, "error": ...}`` in the returned output.
    """

    subtype: NodeSubtype = NodeSubtype.UNKNOWN
    display_name: str = "Node"

    def __init__(self):
        self.logger = logger.bind(handler=self.subtype.value)

    @abstractmethod
    async def execute(
        self,
        node: WorkflowNodeSpec,
        input_data: Any,
        context: NodeExecutionContext,
    ) -> Dict[str, Any]:
        """Run the node and return its output."""
        pass

    def failure(self, error: Any, fallback: str) -> Dict[str, Any]:
        """Build a failed node output, preferring the error's own message."""
        message = str(error) if error else ""
        return {"success": False, "error": message or fallback}


class PassThroughNode(BaseNodeHandler):
    """Fallback for subtypes this runtime does not know about."""

    subtype = NodeSubtype.UNKNOWN
    display_name = "Pass Through"

    async def execute(
        self,
        node: WorkflowNodeSpec,
        input_data: Any,
        context: NodeExecutionContext,
    ) -> Dict[str, Any]:
        return {"success": True, "data": input_data}
