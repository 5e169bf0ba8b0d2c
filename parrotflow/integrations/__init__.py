"""Collaborators called by automation nodes."""

from .email import (
    EmailResult,
    EmailSender,
    InvitationEmailPayload,
    InvoiceEmailPayload,
    SmtpEmailSender,
)
from .tasks import SqlTaskCreator, TaskCreator

__all__ = [
    "EmailResult",
    "EmailSender",
    "InvitationEmailPayload",
    "InvoiceEmailPayload",
    "SmtpEmailSender",
    "SqlTaskCreator",
    "TaskCreator",
]
