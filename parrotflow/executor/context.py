"""Execution context classes."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .data import NodeResult


@dataclass(frozen=True)
class NodeExecutionContext:
    """Caller information handed to every node handler."""

    user_id: Optional[str] = None
    space_id: Optional[str] = None

    @property
    def executing_user_id(self) -> str:
        return self.user_id or ""


@dataclass
class ExecutionContext:
    """State of a single workflow run.

    Created fresh by ``execute_workflow`` and discarded when it returns.
    """

    node_outputs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    executed_nodes: Set[str] = field(default_factory=set)
    results: List[NodeResult] = field(default_factory=list)

    def record(self, node_id: str, output: Dict[str, Any]) -> None:
        """Store a node's output and mark it executed."""
        self.node_outputs[node_id] = output
        self.executed_nodes.add(node_id)
        self.results.append(NodeResult(node_id=node_id, output=output))

    def has_executed(self, node_id: str) -> bool:
        return node_id in self.executed_nodes

    def output_of(self, node_id: str) -> Optional[Dict[str, Any]]:
        return self.node_outputs.get(node_id)
