"""Automation API schemas."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class ExecuteAutomationRequest(BaseModel):
    """Body of ``POST /api/automations/execute``."""

    model_config = ConfigDict(populate_by_name=True)

    automation_id: Any = Field(None, alias="automationId", description="Automation ID")
    trigger_data: Any = Field(None, alias="triggerData", description="Input for the trigger node")


class ExecuteAutomationResponse(BaseModel):
    """Successful execution response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    execution_id: str = Field(..., alias="executionId")
    result: Dict[str, Any] = Field(..., description="Workflow result")


class GenerateWebhookRequest(BaseModel):
    """Body of ``POST /api/automations/webhooks/generate``."""

    model_config = ConfigDict(populate_by_name=True)

    automation_id: Any = Field(None, alias="automationId", description="Automation ID")


class WebhookUrlResponse(BaseModel):
    """Webhook URL for an automation."""

    success: bool = True
    url: str
    token: str


class WebhookTriggerResponse(BaseModel):
    """Acknowledgement for an inbound webhook."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Webhook received and automation triggered"
    execution_id: str = Field(..., alias="executionId")
