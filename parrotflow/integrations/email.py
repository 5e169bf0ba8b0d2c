"""Outbound email delivery used by the ``send_email`` node."""

from email.message import EmailMessage
from typing import Any, Optional, Protocol

import aiosmtplib
import structlog
from pydantic import BaseModel, Field, field_validator

from parrotflow.config import Settings, settings as default_settings

logger = structlog.get_logger()


def _as_text(value: Any) -> Any:
    # Stored JSON may carry numbers where text is expected.
    if value is None or isinstance(value, str):
        return value
    return str(value)


class InvoiceEmailPayload(BaseModel):
    """Invoice notification addressed to a client."""
    to: Optional[str] = Field(None, description="Recipient address")
    client_name: str = Field(default="Customer")
    invoice_number: str = Field(default="INV-001")
    amount: Any = Field(default=0)
    currency: str = Field(default="USD")
    hosted_link: str = Field(default="")

    coerce_text = field_validator(
        "to", "client_name", "invoice_number", "currency", "hosted_link", mode="before"
    )(_as_text)


class InvitationEmailPayload(BaseModel):
    """Invitation or generic notification email."""
    recipient_email: Optional[str] = Field(None, description="Recipient address")
    recipient_name: str = Field(default="User")
    company_name: str = Field(default="Parrot Portal")
    invitation_token: str = Field(default="")
    inviter_name: str = Field(default="Admin")
    role: str = Field(default="user")
    expires_at: str = Field(..., description="ISO-8601 expiry timestamp")

    coerce_text = field_validator(
        "recipient_email",
        "recipient_name",
        "company_name",
        "invitation_token",
        "inviter_name",
        "role",
        "expires_at",
        mode="before",
    )(_as_text)


class EmailResult(BaseModel):
    """Outcome of a send attempt."""
    success: bool
    error: Optional[str] = None


class EmailSender(Protocol):
    """Contract consumed by the ``send_email`` node."""

    async def send_invoice_email(self, payload: InvoiceEmailPayload) -> EmailResult:
        ...

    async def send_invitation_email(self, payload: InvitationEmailPayload) -> EmailResult:
        ...


class SmtpEmailSender:
    """Plain-text email delivery over SMTP.

    When no SMTP host is configured the message is logged and reported as
    delivered, so automations can be exercised in development.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings
        self.logger = logger.bind(component="email_sender")

    async def send_invoice_email(self, payload: InvoiceEmailPayload) -> EmailResult:
        if not payload.to:
            return EmailResult(success=False, error="Recipient email is required")

        subject = f"Invoice {payload.invoice_number}"
        body = (
            f"Hello {payload.client_name},\n\n"
            f"Invoice {payload.invoice_number} for {payload.amount} {payload.currency} "
            f"is ready.\n"
        )
        if payload.hosted_link:
            body += f"\nView and pay online: {payload.hosted_link}\n"

        return await self._deliver(payload.to, subject, body)

    async def send_invitation_email(self, payload: InvitationEmailPayload) -> EmailResult:
        if not payload.recipient_email:
            return EmailResult(success=False, error="Recipient email is required")

        subject = f"Invitation to join {payload.company_name}"
        link = f"{self.settings.invitation_base_url.rstrip('/')}/invite/{payload.invitation_token}"
        body = (
            f"Hello {payload.recipient_name},\n\n"
            f"{payload.inviter_name} invited you to join {payload.company_name} "
            f"as {payload.role}.\n\n"
            f"Accept the invitation: {link}\n"
            f"This invitation expires at {payload.expires_at}.\n"
        )
        return await self._deliver(payload.recipient_email, subject, body)

    async def _deliver(self, to: str, subject: str, body: str) -> EmailResult:
        if not self.settings.smtp_configured:
            self.logger.info("SMTP not configured, email logged only", to=to, subject=subject)
            return EmailResult(success=True)

        message = EmailMessage()
        message["From"] = self.settings.smtp_from_email
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            await aiosmtplib.send(
                message,
                hostname=self.settings.smtp_host,
                port=self.settings.smtp_port,
                start_tls=self.settings.smtp_use_tls,
                username=self.settings.smtp_username,
                password=self.settings.smtp_password,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            self.logger.error("Email sending failed", to=to, subject=subject, error=str(e))
            return EmailResult(success=False, error=f"Email sending failed: {e}")

        self.logger.info("Email sent", to=to, subject=subject)
        return EmailResult(success=True)
