"""Automation data models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean, DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from parrotflow.database import Base


def _uuid() -> str:
    return str(uuid4())


class TriggerType(str, Enum):
    """How an automation is started."""
    WEBHOOK = "webhook"
    SCHEDULE = "schedule"
    EVENT = "event"
    API = "api"
    MANUAL = "manual"


class ExecutionStatus(str, Enum):
    """Execution record status."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Automation(Base):
    """A stored automation definition owned by a user or a space."""

    __tablename__ = "automations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id"))
    space_id: Mapped[Optional[str]] = mapped_column(String(36))

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    trigger_type: Mapped[str] = mapped_column(
        String(20), default=TriggerType.MANUAL.value, nullable=False
    )
    trigger_config: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, default=dict)

    # Statistics
    run_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    success_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failure_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_run_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    nodes: Mapped[List["AutomationNode"]] = relationship(
        "AutomationNode",
        back_populates="automation",
        cascade="all, delete-orphan",
        order_by=lambda: [AutomationNode.order_index, AutomationNode.id],
    )
    connections: Mapped[List["AutomationConnection"]] = relationship(
        "AutomationConnection",
        back_populates="automation",
        cascade="all, delete-orphan",
        order_by=lambda: [AutomationConnection.order_index, AutomationConnection.id],
    )
    executions: Mapped[List["AutomationExecution"]] = relationship(
        "AutomationExecution", back_populates="automation", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_automations_user_id", "user_id"),
        Index("ix_automations_space_id", "space_id"),
        Index("ix_automations_trigger_type", "trigger_type"),
    )

    @property
    def webhook_token(self) -> Optional[str]:
        """Webhook token stored in the trigger configuration, if any."""
        return (self.trigger_config or {}).get("webhook_token")

    def __repr__(self) -> str:
        return f"<Automation(id={self.id}, name='{self.name}', active={self.is_active})>"


class AutomationNode(Base):
    """A single step of an automation graph."""

    __tablename__ = "automation_nodes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    automation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("automations.id", ondelete="CASCADE"), nullable=False
    )
    automation: Mapped["Automation"] = relationship("Automation", back_populates="nodes")

    node_type: Mapped[str] = mapped_column(String(20), nullable=False)
    node_subtype: Mapped[Optional[str]] = mapped_column(String(50))
    title: Mapped[Optional[str]] = mapped_column(String(255))
    config: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, default=dict)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Editor canvas position
    position_x: Mapped[float] = mapped_column(Float, default=0)
    position_y: Mapped[float] = mapped_column(Float, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())

    __table_args__ = (
        Index("ix_automation_nodes_automation_id", "automation_id"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert node to dictionary."""
        return {
            "id": self.id,
            "automation_id": self.automation_id,
            "node_type": self.node_type,
            "node_subtype": self.node_subtype,
            "title": self.title,
            "config": self.config,
            "order_index": self.order_index,
            "position_x": self.position_x,
            "position_y": self.position_y,
        }

    def __repr__(self) -> str:
        return f"<AutomationNode(id={self.id}, type='{self.node_type}', subtype='{self.node_subtype}')>"


class AutomationConnection(Base):
    """Directed edge between two automation nodes."""

    __tablename__ = "automation_connections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    automation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("automations.id", ondelete="CASCADE"), nullable=False
    )
    automation: Mapped["Automation"] = relationship("Automation", back_populates="connections")

    source_node_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("automation_nodes.id", ondelete="CASCADE"), nullable=False
    )
    target_node_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("automation_nodes.id", ondelete="CASCADE"), nullable=False
    )

    # Gate: "if" / "unless" / NULL
    condition_type: Mapped[Optional[str]] = mapped_column(String(20))
    condition_config: Mapped[Optional[Any]] = mapped_column(JSON)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())

    __table_args__ = (
        Index("ix_automation_connections_automation_id", "automation_id"),
        Index("ix_automation_connections_target_node_id", "target_node_id"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert connection to dictionary."""
        return {
            "id": self.id,
            "automation_id": self.automation_id,
            "source_node_id": self.source_node_id,
            "target_node_id": self.target_node_id,
            "condition_type": self.condition_type,
            "condition_config": self.condition_config,
            "order_index": self.order_index,
        }

    def __repr__(self) -> str:
        return f"<AutomationConnection(id={self.id}, {self.source_node_id}->{self.target_node_id})>"


class AutomationExecution(Base):
    """Persisted summary of one automation run."""

    __tablename__ = "automation_executions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    automation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("automations.id", ondelete="CASCADE"), nullable=False
    )
    automation: Mapped["Automation"] = relationship("Automation", back_populates="executions")

    trigger_data: Mapped[Optional[Any]] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(
        String(20), default=ExecutionStatus.RUNNING.value, nullable=False
    )
    execution_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, default=dict)
    error_message: Mapped[Optional[str]] = mapped_column(Text)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    execution_time_ms: Mapped[Optional[int]] = mapped_column(Integer)

    __table_args__ = (
        Index("ix_automation_executions_automation_id", "automation_id"),
        Index("ix_automation_executions_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<AutomationExecution(id={self.id}, status='{self.status}')>"
