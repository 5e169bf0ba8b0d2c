"""Create task node."""

from typing import TYPE_CHECKING, Any, Dict

from parrotflow.executor.context import NodeExecutionContext
from parrotflow.executor.data import WorkflowNodeSpec
from parrotflow.executor.resolver import LayeredConfig

from .base import BaseNodeHandler, NodeSubtype

if TYPE_CHECKING:
    from parrotflow.integrations.tasks import TaskCreator


class CreateTaskNode(BaseNodeHandler):
    """Creates a project task from config, ``input["taskData"]`` or flat input."""

    subtype = NodeSubtype.CREATE_TASK
    display_name = "Create Task"

    def __init__(self, task_creator: "TaskCreator"):
        super().__init__()
        self.task_creator = task_creator

    def build_task_fields(self, fields: LayeredConfig, context: NodeExecutionContext) -> Dict[str, Any]:
        """Resolve the task row to insert."""
        return {
            "title": fields.get("title", "New Task"),
            "description": fields.get("description", ""),
            "status": fields.get("status", "todo"),
            "priority": fields.get("priority", "normal"),
            "project_id": fields.get("projectId", context.space_id or None),
            "assigned_to": fields.get("assignedTo"),
            "due_date": fields.get("dueDate"),
            "estimated_hours": fields.get("estimatedHours", 0),
            "actual_hours": 0,
            "position": fields.get("position", 0),
            "created_by": context.executing_user_id,
        }

    async def execute(
        self,
        node: WorkflowNodeSpec,
        input_data: Any,
        context: NodeExecutionContext,
    ) -> Dict[str, Any]:
        try:
            fields = LayeredConfig.for_node(node.config, input_data, "taskData")
            task_fields = self.build_task_fields(fields, context)

            task = await self.task_creator.create_task(task_fields, context.executing_user_id)
            if not task:
                return {"success": False, "error": "Failed to create task"}
            return {"success": True, "taskId": task.get("id"), "task": task}

        except Exception as e:
            self.logger.error("Task node failed", node_id=node.id, error=str(e))
            return self.failure(e, "Failed to create task")
