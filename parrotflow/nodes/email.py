"""Send email node."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from parrotflow.executor.context import NodeExecutionContext
from parrotflow.executor.data import WorkflowNodeSpec
from parrotflow.executor.resolver import LayeredConfig
from parrotflow.integrations.email import (
    EmailSender,
    InvitationEmailPayload,
    InvoiceEmailPayload,
)

from .base import BaseNodeHandler, NodeSubtype

INVITATION_TTL = timedelta(days=7)


class SendEmailNode(BaseNodeHandler):
    """Sends an invoice email or an invitation/notification email.

    Fields resolve from ``config``, then ``input["emailData"]``, then the flat
    input. ``type == "invoice"`` in config or emailData selects the invoice
    email.
    """

    subtype = NodeSubtype.SEND_EMAIL
    display_name = "Send Email"

    def __init__(self, email_sender: EmailSender):
        super().__init__()
        self.email_sender = email_sender

    async def execute(
        self,
        node: WorkflowNodeSpec,
        input_data: Any,
        context: NodeExecutionContext,
    ) -> Dict[str, Any]:
        try:
            fields = LayeredConfig.for_node(node.config, input_data, "emailData")

            if fields.any_layer_equals("type", "invoice"):
                return await self._send_invoice(fields)
            return await self._send_invitation(fields)

        except Exception as e:
            self.logger.error("Email node failed", node_id=node.id, error=str(e))
            return self.failure(e, "Failed to send email")

    async def _send_invoice(self, fields: LayeredConfig) -> Dict[str, Any]:
        payload = InvoiceEmailPayload(
            to=fields.get("to"),
            client_name=fields.get("clientName", "Customer"),
            invoice_number=fields.get("invoiceNumber", "INV-001"),
            amount=fields.get("amount", 0),
            currency=fields.get("currency", "USD"),
            hosted_link=fields.get("hostedLink", ""),
        )

        result = await self.email_sender.send_invoice_email(payload)
        if not result.success:
            return self.failure(result.error, "Failed to send invoice email")
        return {"success": True, "message": "Invoice email sent successfully"}

    async def _send_invitation(self, fields: LayeredConfig) -> Dict[str, Any]:
        default_expiry = (datetime.now(timezone.utc) + INVITATION_TTL).isoformat()
        payload = InvitationEmailPayload(
            recipient_email=fields.get("to", flat_keys=("to", "email")),
            recipient_name=fields.get("recipientName", "User", flat_keys=("recipientName", "name")),
            company_name=fields.get("companyName", "Parrot Portal"),
            invitation_token=fields.get("invitationToken", "", flat_keys=("token",)),
            inviter_name=fields.get("inviterName", "Admin"),
            role=fields.get("role", "user"),
            expires_at=fields.get("expiresAt", default_expiry),
        )

        result = await self.email_sender.send_invitation_email(payload)
        if not result.success:
            return self.failure(result.error, "Failed to send email")
        return {"success": True, "message": "Email sent successfully"}
