"""Workflow execution engine."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import structlog

from parrotflow.metrics import NODE_EXECUTIONS, NODES_SKIPPED

from .context import ExecutionContext, NodeExecutionContext
from .data import WorkflowConnectionSpec, WorkflowNodeSpec, WorkflowResult

if TYPE_CHECKING:
    from parrotflow.nodes.registry import NodeDispatcher

logger = structlog.get_logger()

NO_TRIGGER_ERROR = "No trigger node found"


class WorkflowExecutor:
    """Runs an automation graph in a single forward pass.

    Nodes are visited once, in ``order_index`` order. A node runs only when
    every connection targeting it comes from a node that already ran; a node
    that is not ready when visited is skipped for the rest of the run. Nodes
    whose incoming gates reject them are skipped too. Neither case is an
    error, the node is just absent from the results.
    """

    def __init__(self, dispatcher: "NodeDispatcher"):
        self.dispatcher = dispatcher
        self.logger = logger.bind(component="workflow_executor")

    async def execute_workflow(
        self,
        nodes: Sequence[WorkflowNodeSpec],
        connections: Sequence[WorkflowConnectionSpec],
        trigger_data: Any,
        user_id: Optional[str] = None,
        space_id: Optional[str] = None,
    ) -> WorkflowResult:
        """Execute the graph and return per-node results."""
        # sorted() is stable: equal order_index keeps input order
        sorted_nodes = sorted(nodes, key=lambda node: node.order_index)

        trigger_node = next((node for node in sorted_nodes if node.is_trigger), None)
        if trigger_node is None:
            self.logger.warning("Workflow has no trigger node", node_count=len(nodes))
            return WorkflowResult(success=False, error=NO_TRIGGER_ERROR)

        node_context = NodeExecutionContext(user_id=user_id, space_id=space_id)
        context = ExecutionContext()

        self.logger.info(
            "Starting workflow execution",
            trigger_node_id=trigger_node.id,
            node_count=len(nodes),
            connection_count=len(connections),
        )

        await self._run_node(context, trigger_node, trigger_data, node_context)

        for node in sorted_nodes:
            if node.is_trigger or context.has_executed(node.id):
                continue

            incoming = self._incoming_connections(connections, node.id)

            if not all(context.has_executed(conn.source_node_id) for conn in incoming):
                self.logger.debug("Node skipped, upstream not executed", node_id=node.id)
                NODES_SKIPPED.labels(reason="not_ready").inc()
                continue

            blocking = next((conn for conn in incoming if conn.blocks_target()), None)
            if blocking is not None:
                self.logger.debug(
                    "Node skipped by condition",
                    node_id=node.id,
                    source_node_id=blocking.source_node_id,
                    condition_type=blocking.condition_type,
                )
                NODES_SKIPPED.labels(reason="condition").inc()
                continue

            # Fan-in nodes only see the first upstream output
            node_input = context.output_of(incoming[0].source_node_id) if incoming else trigger_data
            await self._run_node(context, node, node_input, node_context)

        self.logger.info(
            "Workflow execution completed",
            executed=len(context.executed_nodes),
            skipped=len(nodes) - len(context.executed_nodes),
        )
        return WorkflowResult(success=True, results=context.results)

    async def execute_node(
        self,
        node: WorkflowNodeSpec,
        input_data: Any,
        node_context: NodeExecutionContext,
    ) -> Dict[str, Any]:
        """Execute one node through its subtype handler."""
        output = await self.dispatcher.dispatch(node, input_data, node_context)
        outcome = "success" if output.get("success") else "failure"
        NODE_EXECUTIONS.labels(node_subtype=node.node_subtype or "none", outcome=outcome).inc()
        if outcome == "failure":
            self.logger.warning(
                "Node reported failure",
                node_id=node.id,
                node_subtype=node.node_subtype,
                error=output.get("error"),
            )
        return output

    async def _run_node(
        self,
        context: ExecutionContext,
        node: WorkflowNodeSpec,
        input_data: Any,
        node_context: NodeExecutionContext,
    ) -> None:
        output = await self.execute_node(node, input_data, node_context)
        context.record(node.id, output)

    @staticmethod
    def _incoming_connections(
        connections: Sequence[WorkflowConnectionSpec], node_id: str
    ) -> List[WorkflowConnectionSpec]:
        return [conn for conn in connections if conn.target_node_id == node_id]
