"""API routes for running automations."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Body, Depends, Request, status

from parrotflow.auth.dependencies import get_current_user
from parrotflow.auth.models import User
from parrotflow.config import settings
from parrotflow.exceptions import APIError
from parrotflow.executor.resolver import is_truthy

from .dependencies import get_automation_service
from .exceptions import AutomationRunError, ExecutionRecordError
from .models import TriggerType
from .schemas import (
    ExecuteAutomationRequest,
    ExecuteAutomationResponse,
    GenerateWebhookRequest,
    WebhookTriggerResponse,
    WebhookUrlResponse,
)
from .service import AutomationService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/automations", tags=["Automations"])


async def read_execute_request(request: Request) -> ExecuteAutomationRequest:
    """Parse the execute body. An empty or non-object body counts as ``{}``."""
    raw = await request.body()
    body = json.loads(raw) if raw.strip() else {}
    return ExecuteAutomationRequest.model_validate(body if isinstance(body, dict) else {})


@router.post("/execute", response_model=ExecuteAutomationResponse)
async def execute_automation(
    request: Request,
    current_user: Optional[User] = Depends(get_current_user),
    service: AutomationService = Depends(get_automation_service),
):
    """Run a stored automation on behalf of the caller."""
    if current_user is None:
        raise APIError(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    try:
        body = await read_execute_request(request)
        if not is_truthy(body.automation_id):
            raise APIError(status.HTTP_400_BAD_REQUEST, "Automation ID is required")

        automation = await service.get_active_automation(str(body.automation_id))
        if automation is None:
            raise APIError(status.HTTP_404_NOT_FOUND, "Automation not found or not active")

        if not service.can_access(automation, current_user):
            raise APIError(status.HTTP_403_FORBIDDEN, "Access denied")

        trigger_data = body.trigger_data if is_truthy(body.trigger_data) else {}
        execution_id, result = await service.execute(
            automation,
            trigger_data,
            user_id=current_user.id,
            space_id=automation.space_id or current_user.company_id,
        )

        return ExecuteAutomationResponse(execution_id=execution_id, result=result.to_dict())

    except APIError:
        raise
    except (ExecutionRecordError, AutomationRunError) as e:
        raise APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    except Exception as e:
        logger.error("Failed to execute automation", error=str(e), exc_info=True)
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            str(e) or "Failed to execute automation",
        )


async def read_webhook_payload(request: Request) -> Dict[str, Any]:
    """Turn an inbound webhook request into trigger data."""
    try:
        content_type = request.headers.get("content-type", "").lower()
        if "application/json" in content_type:
            body = await request.json()
            payload = body if isinstance(body, dict) else {"body": body}
        else:
            text = (await request.body()).decode("utf-8", errors="replace")
            payload = {"raw": text, "headers": dict(request.headers)} if text else {}
    except ValueError:
        payload = {"timestamp": datetime.now(timezone.utc).isoformat()}

    payload["_webhook"] = {
        "received_at": datetime.now(timezone.utc).isoformat(),
        "method": request.method,
    }
    return payload


@router.post("/webhook/{token}", response_model=WebhookTriggerResponse)
async def trigger_webhook(
    token: str,
    request: Request,
    service: AutomationService = Depends(get_automation_service),
):
    """Run the webhook-triggered automation that owns ``token``."""
    try:
        automation = await service.find_by_webhook_token(token)
        if automation is None:
            raise APIError(status.HTTP_404_NOT_FOUND, "Webhook not found or automation inactive")

        trigger_data = await read_webhook_payload(request)
        logger.info("Webhook received", automation_id=automation.id, method=request.method)

        execution_id, _ = await service.execute(
            automation,
            trigger_data,
            user_id=automation.user_id,
            space_id=automation.space_id,
        )

        return WebhookTriggerResponse(execution_id=execution_id)

    except APIError:
        raise
    except Exception as e:
        logger.error("Webhook processing failed", token=token, error=str(e), exc_info=True)
        raise APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Webhook processing failed")


@router.post("/webhooks/generate", response_model=WebhookUrlResponse)
async def generate_webhook_url(
    request: Request,
    body: Optional[GenerateWebhookRequest] = Body(None),
    current_user: Optional[User] = Depends(get_current_user),
    service: AutomationService = Depends(get_automation_service),
):
    """Return the webhook URL of an automation, creating its token if needed."""
    if current_user is None:
        raise APIError(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    automation_id = body.automation_id if body else None
    if not is_truthy(automation_id):
        raise APIError(status.HTTP_400_BAD_REQUEST, "Automation ID is required")

    automation = await service.get_owned_automation(str(automation_id), current_user.id)
    if automation is None:
        raise APIError(status.HTTP_404_NOT_FOUND, "Automation not found")

    if automation.trigger_type != TriggerType.WEBHOOK.value:
        raise APIError(status.HTTP_400_BAD_REQUEST, "Automation must have webhook trigger type")

    token = await service.ensure_webhook_token(automation)
    base_url = (settings.public_base_url or str(request.base_url)).rstrip("/")

    return WebhookUrlResponse(url=f"{base_url}/api/automations/webhook/{token}", token=token)
