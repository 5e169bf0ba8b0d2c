"""Webhook call node for outbound HTTP requests."""

import asyncio
import json
from typing import Any, Dict, Optional

import aiohttp

from parrotflow.config import settings
from parrotflow.executor.context import NodeExecutionContext
from parrotflow.executor.data import WorkflowNodeSpec
from parrotflow.executor.resolver import LayeredConfig

from .base import BaseNodeHandler, NodeSubtype

BODY_METHODS = ("POST", "PUT", "PATCH")


def parse_response_body(text: str) -> Any:
    """Decode a response body as JSON, falling back to the raw text."""
    try:
        return json.loads(text)
    except ValueError:
        return text


class WebhookCallNode(BaseNodeHandler):
    """Calls an arbitrary URL resolved from config, ``webhookData`` or input."""

    subtype = NodeSubtype.WEBHOOK_CALL
    display_name = "Webhook Call"

    def __init__(self, timeout_seconds: Optional[float] = None):
        super().__init__()
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds if timeout_seconds is not None else settings.webhook_call_timeout
        )

    def prepare_request(self, fields: LayeredConfig) -> Dict[str, Any]:
        """Resolve method, url, headers and body for the request."""
        method = str(fields.get("method", "POST")).upper()

        headers = {"Content-Type": "application/json"}
        custom_headers = fields.get("headers", {})
        if isinstance(custom_headers, dict):
            headers.update({str(k): str(v) for k, v in custom_headers.items()})

        request: Dict[str, Any] = {
            "method": method,
            "url": fields.get("url"),
            "headers": headers,
        }

        body = fields.get("body", flat_keys=("body", "data"))
        if body is not None and method in BODY_METHODS:
            request["data"] = body if isinstance(body, str) else json.dumps(body)

        return request

    async def execute(
        self,
        node: WorkflowNodeSpec,
        input_data: Any,
        context: NodeExecutionContext,
    ) -> Dict[str, Any]:
        try:
            fields = LayeredConfig.for_node(node.config, input_data, "webhookData")
            request = self.prepare_request(fields)
            if not request["url"]:
                return {"success": False, "error": "Webhook URL is required"}

            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(**request) as response:
                    response_text = await response.text(errors="replace")
                    status = response.status
                    reason = response.reason or ""

            response_data = parse_response_body(response_text)

            if not 200 <= status < 300:
                self.logger.warning(
                    "Webhook call returned error status",
                    node_id=node.id,
                    url=request["url"],
                    status=status,
                )
                return {
                    "success": False,
                    "error": f"Webhook call failed: {status} {reason}",
                    "response": response_data,
                }

            return {
                "success": True,
                "response": response_data,
                "status": status,
                "statusText": reason,
            }

        except asyncio.TimeoutError:
            return {
                "success": False,
                "error": f"Webhook call timed out after {self.timeout.total} seconds",
            }
        except Exception as e:
            self.logger.error("Webhook call failed", node_id=node.id, error=str(e))
            return self.failure(e, "Failed to call webhook")
