"""Stored automations and the HTTP surface that runs them."""

from .exceptions import (
    AutomationError,
    AutomationRunError,
    ExecutionRecordError,
)
from .models import (
    Automation,
    AutomationConnection,
    AutomationExecution,
    AutomationNode,
    ExecutionStatus,
    TriggerType,
)

__all__ = [
    "AutomationError",
    "AutomationRunError",
    "ExecutionRecordError",
    "Automation",
    "AutomationConnection",
    "AutomationExecution",
    "AutomationNode",
    "ExecutionStatus",
    "TriggerType",
]
