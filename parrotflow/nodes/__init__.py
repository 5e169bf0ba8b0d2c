"""Node handlers for automation workflows."""

from .base import BaseNodeHandler, NodeSubtype, PassThroughNode
from .delay import DelayNode
from .email import SendEmailNode
from .registry import NodeDispatcher
from .task import CreateTaskNode
from .webhook import WebhookCallNode

__all__ = [
    "BaseNodeHandler",
    "NodeSubtype",
    "PassThroughNode",
    "DelayNode",
    "SendEmailNode",
    "NodeDispatcher",
    "CreateTaskNode",
    "WebhookCallNode",
]
