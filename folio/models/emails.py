"""Data models for invoice emails."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class EmailDraft(BaseModel):
    """A pre-filled invoice email, handed to whatever transport the host uses."""

    to: list[str] = Field(description="Recipient email addresses")
    cc: list[str] = Field(default_factory=list, description="CC addresses")
    subject: str = Field(description="Email subject line")
    body: str = Field(description="Email body text")
    invoice_id: Optional[str] = Field(default=None, description="ID of the invoice being sent")

    def to_preview(self) -> str:
        """Format draft for review before sending."""
        cc_line = f"\n  CC: {', '.join(self.cc)}" if self.cc else ""
        return (
            f"--- DRAFT FOR REVIEW ---\n"
            f"  To: {', '.join(self.to)}{cc_line}\n"
            f"  Subject: {self.subject}\n"
            f"  ---\n"
            f"  {self.body}\n"
            f"  --- END DRAFT ---"
        )
