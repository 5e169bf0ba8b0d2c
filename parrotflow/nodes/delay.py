"""Delay node."""

import asyncio
from typing import Any, Dict, Optional

from parrotflow.config import settings
from parrotflow.executor.context import NodeExecutionContext
from parrotflow.executor.data import WorkflowNodeSpec
from parrotflow.executor.resolver import is_truthy

from .base import BaseNodeHandler, NodeSubtype

# Milliseconds per unit; anything unrecognised counts as days.
UNIT_MULTIPLIERS = {
    "seconds": 1000,
    "minutes": 60_000,
    "hours": 3_600_000,
}
DAY_MS = 86_400_000


def requested_delay_ms(config: Dict[str, Any]) -> float:
    """Delay asked for by the node configuration, in milliseconds."""
    duration = config.get("duration")
    duration = duration if is_truthy(duration) else 0
    unit = config.get("unit")
    unit = unit if is_truthy(unit) else "seconds"
    multiplier = UNIT_MULTIPLIERS.get(unit, DAY_MS) if isinstance(unit, str) else DAY_MS
    return float(duration) * multiplier


class DelayNode(BaseNodeHandler):
    """Pauses the run, never longer than ``max_delay_ms``."""

    subtype = NodeSubtype.DELAY
    display_name = "Delay"

    def __init__(self, max_delay_ms: Optional[int] = None):
        super().__init__()
        self.max_delay_ms = (
            settings.automation_max_delay_ms if max_delay_ms is None else max_delay_ms
        )

    async def execute(
        self,
        node: WorkflowNodeSpec,
        input_data: Any,
        context: NodeExecutionContext,
    ) -> Dict[str, Any]:
        try:
            requested_ms = requested_delay_ms(node.config)
        except (TypeError, ValueError) as e:
            return self.failure(e, "Invalid delay duration")

        actual_ms = max(0.0, min(requested_ms, self.max_delay_ms))
        if actual_ms < requested_ms:
            self.logger.info(
                "Delay capped",
                node_id=node.id,
                requested_ms=requested_ms,
                actual_ms=actual_ms,
            )

        await asyncio.sleep(actual_ms / 1000)
        return {"success": True, "delayed": True}
