"""Shareable links and email drafts for invoices. No transport lives here."""

from __future__ import annotations

import uuid
from typing import Optional

from folio.models.emails import EmailDraft
from folio.models.invoices import Invoice
from folio.tools.currency import format_currency, format_date
from folio.utils.env import get_app_url


def new_share_link(base_url: Optional[str] = None) -> str:
    """Return a fresh ``{base}/invoice/{token}`` link."""
    base = (base_url or get_app_url()).rstrip("/")
    return f"{base}/invoice/{uuid.uuid4()}"


def compose_email(invoice: Invoice) -> EmailDraft:
    """Pre-fill the email that accompanies ``invoice``."""
    subject = f"Invoice {invoice.invoice_number}"
    if invoice.from_name:
        subject += f" from {invoice.from_name}"
    body = (
        f"Dear {invoice.to_name or 'customer'},\n"
        f"\n"
        f"Please find attached your invoice {invoice.invoice_number} for the amount of "
        f"{format_currency(invoice.total, invoice.currency)}.\n"
        f"\n"
        f"Payment is due by {format_date(invoice.due_date, invoice.currency)}.\n"
    )
    if invoice.payment_link:
        body += f"\nYou can pay online here: {invoice.payment_link}\n"
    body += (
        f"\n"
        f"Thank you for your business!\n"
        f"\n"
        f"Best regards,\n"
        f"{invoice.from_name}"
    )
    return EmailDraft(
        to=[invoice.to_email] if invoice.to_email else [],
        subject=subject,
        body=body,
        invoice_id=invoice.id,
    )
