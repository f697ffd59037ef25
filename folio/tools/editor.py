"""Invoice editing and lifecycle operations.

Every operation takes an invoice snapshot and returns a new one; the input is
never modified. Each change stamps ``updated_at``. Changes to items or the tax
rate go through ``calculations.recompute`` so subtotal, tax and total are
re-derived together from the full item list.
"""

from __future__ import annotations

import calendar
import logging
import random
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Union

from folio.config import config
from folio.errors import InvalidTransitionError, ItemNotFoundError, ValidationError
from folio.models.invoices import (
    STATUS_TRANSITIONS,
    Currency,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    RecurringFrequency,
    Template,
    local_timestamp,
)
from folio.tools.calculations import Number, line_value, recompute, validate_tax_rate
from folio.tools.currency import resolve_currency
from folio.tools.numbering import next_invoice_number
from folio.tools.renderer import resolve_template
from folio.tools.sharing import new_share_link

logger = logging.getLogger(__name__)

# Free-text fields that update_details may change.
DETAIL_FIELDS = frozenset({
    "from_name", "from_email", "from_phone", "from_address",
    "to_name", "to_email", "to_phone", "to_address",
    "notes", "terms", "payment_instructions", "payment_link",
})

DateLike = Union[date, str]


def _touch(invoice: Invoice, now: Optional[datetime], **changes: Any) -> Invoice:
    return invoice.model_copy(update={**changes, "updated_at": local_timestamp(now or datetime.now())})


def _with_items(invoice: Invoice, items: tuple[InvoiceItem, ...], now: Optional[datetime]) -> Invoice:
    return _touch(recompute(invoice, items=items), now)


def _parse_date(value: DateLike, name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}") from e
    raise ValidationError(f"{name} must be a date, got {value!r}")


def _check_dates(invoice_date: date, due_date: date) -> None:
    if due_date < invoice_date:
        raise ValidationError(
            f"due_date {due_date.isoformat()} is before invoice date {invoice_date.isoformat()}"
        )


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole months, clamping the day to the month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_occurrence(value: date, frequency: Union[str, RecurringFrequency]) -> date:
    """The date one recurrence period after ``value``."""
    frequency = RecurringFrequency(frequency)
    if frequency is RecurringFrequency.WEEKLY:
        return value + timedelta(days=7)
    if frequency is RecurringFrequency.MONTHLY:
        return add_months(value, 1)
    return add_months(value, 3)


# ── Creation ────────────────────────────────────────────────────────


def new_invoice(
    now: Optional[datetime] = None,
    *,
    currency: Union[str, Currency, None] = None,
    template: Union[str, Template, None] = None,
    tax_rate: Optional[Number] = None,
    due_in_days: Optional[int] = None,
    number: Optional[str] = None,
    invoice_id: Optional[str] = None,
    share_base_url: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> Invoice:
    """Create a draft invoice with one blank line item and configured defaults."""
    now = local_timestamp(now or datetime.now())
    days = config.DUE_DAYS if due_in_days is None else due_in_days
    if days < 0:
        raise ValidationError(f"due_in_days cannot be negative, got {days}")

    invoice = Invoice(
        id=invoice_id or uuid.uuid4().hex,
        invoice_number=number or next_invoice_number(now, rng),
        invoice_date=now.date(),
        due_date=now.date() + timedelta(days=days),
        items=(InvoiceItem(),),
        tax_rate=validate_tax_rate(config.DEFAULT_TAX_RATE if tax_rate is None else tax_rate),
        currency=resolve_currency(currency or config.DEFAULT_CURRENCY).currency,
        template=resolve_template(template or config.DEFAULT_TEMPLATE),
        status=InvoiceStatus.DRAFT,
        created_at=now,
        updated_at=now,
        shareable_link=new_share_link(share_base_url),
    )
    logger.debug(f"New invoice {invoice.invoice_number} ({invoice.id})")
    return recompute(invoice)


# ── Line items ──────────────────────────────────────────────────────


def add_item(
    invoice: Invoice,
    description: str = "",
    quantity: Number = 1,
    rate: Number = 0,
    *,
    now: Optional[datetime] = None,
) -> Invoice:
    item = InvoiceItem(
        description=description,
        quantity=line_value(quantity, "quantity"),
        rate=line_value(rate, "rate"),
    )
    return _with_items(invoice, invoice.items + (item,), now)


def remove_item(invoice: Invoice, item_id: str, *, now: Optional[datetime] = None) -> Invoice:
    """Drop a line item. The last remaining item cannot be removed."""
    if invoice.item(item_id) is None:
        raise ItemNotFoundError(f"No line item {item_id!r} on invoice {invoice.invoice_number}")
    if len(invoice.items) == 1:
        raise ValidationError("An invoice must keep at least one line item")
    return _with_items(invoice, tuple(i for i in invoice.items if i.id != item_id), now)


def _update_item(invoice: Invoice, item_id: str, now: Optional[datetime], **changes: Any) -> Invoice:
    if invoice.item(item_id) is None:
        raise ItemNotFoundError(f"No line item {item_id!r} on invoice {invoice.invoice_number}")
    items = tuple(
        item.model_copy(update=changes) if item.id == item_id else item
        for item in invoice.items
    )
    return _with_items(invoice, items, now)


def set_item_description(
    invoice: Invoice, item_id: str, description: str, *, now: Optional[datetime] = None,
) -> Invoice:
    if not isinstance(description, str):
        raise ValidationError(f"description must be text, got {description!r}")
    return _update_item(invoice, item_id, now, description=description)


def set_item_quantity(
    invoice: Invoice, item_id: str, quantity: Number, *, now: Optional[datetime] = None,
) -> Invoice:
    return _update_item(invoice, item_id, now, quantity=line_value(quantity, "quantity"))


def set_item_rate(
    invoice: Invoice, item_id: str, rate: Number, *, now: Optional[datetime] = None,
) -> Invoice:
    return _update_item(invoice, item_id, now, rate=line_value(rate, "rate"))


def set_tax_rate(invoice: Invoice, tax_rate: Number, *, now: Optional[datetime] = None) -> Invoice:
    return _touch(recompute(invoice, tax_rate=validate_tax_rate(tax_rate)), now)


# ── Header fields ───────────────────────────────────────────────────


def set_dates(
    invoice: Invoice,
    *,
    invoice_date: Optional[DateLike] = None,
    due_date: Optional[DateLike] = None,
    now: Optional[datetime] = None,
) -> Invoice:
    """Change the invoice and/or due date. The due date may not precede the invoice date."""
    issued = invoice.invoice_date if invoice_date is None else _parse_date(invoice_date, "date")
    due = invoice.due_date if due_date is None else _parse_date(due_date, "due_date")
    _check_dates(issued, due)

    changes: dict[str, Any] = {"invoice_date": issued, "due_date": due}
    if invoice.is_recurring and invoice.recurring_frequency:
        changes["next_due_date"] = next_occurrence(due, invoice.recurring_frequency)
    return _touch(invoice, now, **changes)


def update_details(
    invoice: Invoice, updates: Mapping[str, Any], *, now: Optional[datetime] = None,
) -> Invoice:
    """Change party blocks and free-text sections.

    Only the keys in DETAIL_FIELDS are accepted; anything else raises.
    """
    unknown = set(updates) - DETAIL_FIELDS
    if unknown:
        raise ValidationError(
            f"Cannot update {', '.join(sorted(unknown))}. Allowed: {', '.join(sorted(DETAIL_FIELDS))}"
        )
    for key, value in updates.items():
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{key} must be text, got {value!r}")
    if not updates:
        return invoice

    # payment_link is optional; every other detail field is plain text
    changes = {
        key: "" if value is None and key != "payment_link" else value
        for key, value in updates.items()
    }
    return _touch(invoice, now, **changes)


def set_currency(
    invoice: Invoice, currency: Union[str, Currency], *, now: Optional[datetime] = None,
) -> Invoice:
    return _touch(invoice, now, currency=resolve_currency(currency, strict=True).currency)


def set_template(
    invoice: Invoice, template: Union[str, Template], *, now: Optional[datetime] = None,
) -> Invoice:
    return _touch(invoice, now, template=resolve_template(template, strict=True))


def set_logo(invoice: Invoice, logo: Optional[str], *, now: Optional[datetime] = None) -> Invoice:
    """Attach an already-ingested logo as a ``data:image/...`` URI, or clear it with None."""
    if logo is not None and not logo.startswith("data:image/"):
        raise ValidationError("company logo must be a data:image URI")
    return _touch(invoice, now, company_logo=logo)


def set_recurring(
    invoice: Invoice,
    frequency: Union[str, RecurringFrequency, None],
    *,
    now: Optional[datetime] = None,
) -> Invoice:
    """Turn recurrence on with ``frequency``, or off with None."""
    if frequency is None:
        return _touch(invoice, now, is_recurring=False, recurring_frequency=None, next_due_date=None)
    try:
        frequency = RecurringFrequency(frequency)
    except ValueError as e:
        raise ValidationError(f"Unknown recurring frequency: {frequency!r}") from e
    return _touch(
        invoice,
        now,
        is_recurring=True,
        recurring_frequency=frequency,
        next_due_date=next_occurrence(invoice.due_date, frequency),
    )


def refresh_share_link(
    invoice: Invoice, base_url: Optional[str] = None, *, now: Optional[datetime] = None,
) -> Invoice:
    return _touch(invoice, now, shareable_link=new_share_link(base_url))


# ── Status ──────────────────────────────────────────────────────────


def can_transition(current: Union[str, InvoiceStatus], target: Union[str, InvoiceStatus]) -> bool:
    return InvoiceStatus(target) in STATUS_TRANSITIONS.get(InvoiceStatus(current), set())


def transition_status(
    invoice: Invoice, target: Union[str, InvoiceStatus], *, now: Optional[datetime] = None,
) -> Invoice:
    """Move the invoice to ``target`` along the transition table.

    Moving to the current status returns the invoice unchanged.
    """
    try:
        target = InvoiceStatus(target)
    except ValueError as e:
        raise ValidationError(f"Unknown invoice status: {target!r}") from e

    if target is invoice.status:
        return invoice
    if not can_transition(invoice.status, target):
        raise InvalidTransitionError(
            f"Transition not allowed: {invoice.status.value} -> {target.value}"
        )
    logger.info(f"Invoice {invoice.invoice_number}: {invoice.status.value} -> {target.value}")
    return _touch(invoice, now, status=target)
