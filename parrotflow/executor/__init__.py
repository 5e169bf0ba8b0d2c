"""Workflow execution engine module."""

from .engine import NO_TRIGGER_ERROR, WorkflowExecutor
from .context import ExecutionContext, NodeExecutionContext
from .data import (
    ConditionType,
    NodeResult,
    WorkflowConnectionSpec,
    WorkflowNodeSpec,
    WorkflowResult,
)
from .errors import DataLayerError, ErrorKind, ExecutionError, normalize_error
from .resolver import LayeredConfig, is_truthy

__all__ = [
    "NO_TRIGGER_ERROR",
    "WorkflowExecutor",
    "ExecutionContext",
    "NodeExecutionContext",
    "ConditionType",
    "NodeResult",
    "WorkflowConnectionSpec",
    "WorkflowNodeSpec",
    "WorkflowResult",
    "DataLayerError",
    "ErrorKind",
    "ExecutionError",
    "normalize_error",
    "LayeredConfig",
    "is_truthy",
]
