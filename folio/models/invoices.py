"""Data models for Folio invoices.

Models are frozen snapshots. Field names are snake_case; the camelCase keys of
the browser app's saved invoices are accepted as aliases, so an exported
``invoices`` list validates unchanged.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Context, Decimal, localcontext
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, computed_field, field_validator
from pydantic.alias_generators import to_camel

# Decimal internally, plain JSON number on export.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# Quantities and rates stay below MAX_LINE_VALUE with at most MAX_PLACES
# decimal places, so every product, sum and tax fits MONEY_CONTEXT exactly.
MAX_LINE_VALUE = Decimal("1e12")
MAX_PLACES = 10
MONEY_CONTEXT = Context(prec=80)


class Currency(str, Enum):
    INR = "INR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"


class Template(str, Enum):
    MODERN = "modern"
    CLASSIC = "classic"
    MINIMAL = "minimal"


class RecurringFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


# draft → sent → paid, with recall (sent → draft) and reopen (paid → sent).
STATUS_TRANSITIONS: dict[InvoiceStatus, set[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: {InvoiceStatus.SENT},
    InvoiceStatus.SENT: {InvoiceStatus.PAID, InvoiceStatus.DRAFT},
    InvoiceStatus.PAID: {InvoiceStatus.SENT},
}


def _new_id() -> str:
    return uuid.uuid4().hex


def local_timestamp(value: datetime) -> datetime:
    """Return ``value`` as naive local time. Naive values are taken as local already."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class _Snapshot(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class InvoiceItem(_Snapshot):
    """A single line item. ``amount`` is always ``quantity * rate``."""

    id: str = Field(default_factory=_new_id)
    description: str = Field(default="", description="What was delivered, e.g. 'Website redesign'")
    quantity: Money = Field(default=Decimal("1"), ge=0, lt=MAX_LINE_VALUE, decimal_places=MAX_PLACES)
    rate: Money = Field(
        default=Decimal("0"), ge=0, lt=MAX_LINE_VALUE, decimal_places=MAX_PLACES,
        description="Price per unit in the invoice currency",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def amount(self) -> Money:
        with localcontext(MONEY_CONTEXT):
            return self.quantity * self.rate


class Invoice(_Snapshot):
    """Represents one invoice with its derived totals."""

    id: str = Field(default_factory=_new_id)
    invoice_number: str = Field(default="", description="Human-readable number, e.g. INV-202601-042")
    invoice_date: date = Field(alias="date")
    due_date: date

    # Sender
    from_name: str = ""
    from_email: str = ""
    from_phone: str = ""
    from_address: str = ""
    company_logo: Optional[str] = Field(default=None, description="Embedded logo as a data: URI")

    # Client
    to_name: str = ""
    to_email: str = ""
    to_phone: str = ""
    to_address: str = ""

    items: tuple[InvoiceItem, ...] = ()

    # Derived by folio.tools.calculations.recompute
    subtotal: Money = Field(default=Decimal("0"), ge=0)
    tax_rate: Money = Field(default=Decimal("0"), ge=0, le=100, decimal_places=MAX_PLACES)
    tax_amount: Money = Field(default=Decimal("0"), ge=0)
    total: Money = Field(default=Decimal("0"), ge=0)
    currency: Currency = Currency.INR

    notes: str = ""
    terms: str = ""
    payment_instructions: str = ""

    status: InvoiceStatus = InvoiceStatus.DRAFT
    created_at: datetime
    updated_at: datetime

    template: Template = Template.MODERN
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    next_due_date: Optional[date] = None
    shareable_link: Optional[str] = None
    payment_link: Optional[str] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _local_timestamps(cls, value: datetime) -> datetime:
        # the browser app writes UTC ("...Z"); Folio stamps naive local time
        return local_timestamp(value)

    def item(self, item_id: str) -> Optional[InvoiceItem]:
        """Return the line item with ``item_id``, or None."""
        return next((i for i in self.items if i.id == item_id), None)

    def to_preview(self) -> str:
        """Format the invoice as a short text summary for review."""
        from folio.tools.currency import format_currency

        status_emoji = {
            InvoiceStatus.DRAFT: "📝",
            InvoiceStatus.SENT: "📤",
            InvoiceStatus.PAID: "✅",
        }.get(self.status, "📄")

        lines = [
            f"{status_emoji} **Invoice {self.invoice_number}**",
            f"  Status: {self.status.value.upper()}",
            f"  From: {self.from_name or 'Not set'}",
            f"  To: {self.to_name or 'Not set'}",
        ]
        if self.to_email:
            lines.append(f"  Email: {self.to_email}")
        lines.append(f"  Date: {self.invoice_date.isoformat()}")
        lines.append(f"  Due: {self.due_date.isoformat()}")
        lines.append("")
        lines.append("  **Line Items:**")
        for item in self.items:
            lines.append(
                f"    - {item.description or '(no description)'} "
                f"× {item.quantity} @ {format_currency(item.rate, self.currency)} "
                f"— {format_currency(item.amount, self.currency)}"
            )
        lines.append("")
        lines.append(f"  Subtotal: {format_currency(self.subtotal, self.currency)}")
        lines.append(f"  Tax ({self.tax_rate}%): {format_currency(self.tax_amount, self.currency)}")
        lines.append(f"  **Total: {format_currency(self.total, self.currency)}**")
        if self.is_recurring and self.recurring_frequency:
            lines.append(f"  Repeats: {self.recurring_frequency.value}")
        if self.notes:
            lines.append(f"  Notes: {self.notes}")

        return "\n".join(lines)
