"""Execution data handling classes."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .resolver import is_truthy

TRIGGER_NODE_TYPE = "trigger"


class ConditionType(str, Enum):
    """Gate attached to a connection."""
    IF = "if"
    UNLESS = "unless"


class WorkflowNodeSpec(BaseModel):
    """Read-only view of a stored node for one execution."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(..., description="Node ID")
    node_type: str = Field(..., description="'trigger' or any other node type")
    node_subtype: Optional[str] = Field(None, description="Behaviour selector")
    order_index: int = Field(default=0, description="Sort key for the forward pass")
    config: Dict[str, Any] = Field(default_factory=dict, description="Node configuration")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("order_index", mode="before")
    @classmethod
    def _default_order(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("config", mode="before")
    @classmethod
    def _default_config(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @property
    def is_trigger(self) -> bool:
        return self.node_type == TRIGGER_NODE_TYPE


class WorkflowConnectionSpec(BaseModel):
    """Read-only view of a stored connection for one execution."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    source_node_id: str
    target_node_id: str
    condition_type: Optional[str] = None
    condition_config: Any = None

    @field_validator("source_node_id", "target_node_id", mode="before")
    @classmethod
    def _coerce_node_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    def blocks_target(self) -> bool:
        """Whether this connection's gate suppresses its target node."""
        if self.condition_type == ConditionType.IF.value:
            return not is_truthy(self.condition_config)
        if self.condition_type == ConditionType.UNLESS.value:
            return is_truthy(self.condition_config)
        return False


class NodeResult(BaseModel):
    """Output recorded for one executed node."""

    node_id: str
    output: Dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"nodeId": self.node_id, "output": self.output}


class WorkflowResult(BaseModel):
    """Outcome of one ``execute_workflow`` call."""

    success: bool
    error: Optional[str] = None
    results: Optional[List[NodeResult]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the API/record shape, omitting absent fields."""
        data: Dict[str, Any] = {"success": self.success}
        if self.error is not None:
            data["error"] = self.error
        if self.results is not None:
            data["results"] = [result.to_dict() for result in self.results]
        return data
