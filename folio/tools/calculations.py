"""Calculation engine. Derives item amounts, subtotal, tax and total.

All arithmetic is done on Decimal. Inputs may be int, float, str or Decimal;
floats go through their string form so 0.1 stays 0.1. Nothing is rounded
here; rounding to two places belongs to the currency formatter.

Quantities, rates and tax rates are bounded (below 10^12, at most ten decimal
places) and all arithmetic runs in MONEY_CONTEXT, which is wide enough for the
results to be exact.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Iterable, Optional, Sequence, Union

from folio.errors import ValidationError
from folio.models.invoices import MAX_LINE_VALUE, MAX_PLACES, MONEY_CONTEXT, Invoice, InvoiceItem

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Anything this large is not an amount of money.
MAX_MAGNITUDE = Decimal("1e40")


def to_decimal(value: Number, name: str = "value") -> Decimal:
    """Convert ``value`` to a finite Decimal or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e
    if not result.is_finite():
        raise ValidationError(f"{name} must be finite, got {value!r}")
    if abs(result) >= MAX_MAGNITUDE:
        raise ValidationError(f"{name} is out of range, got {value!r}")
    return result


def non_negative(value: Number, name: str) -> Decimal:
    result = to_decimal(value, name)
    if result < ZERO:
        raise ValidationError(f"{name} cannot be negative, got {result}")
    return result


def _check_places(value: Decimal, name: str) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        places = -value.normalize().as_tuple().exponent
    if places > MAX_PLACES:
        raise ValidationError(f"{name} has more than {MAX_PLACES} decimal places, got {value}")
    return value


def line_value(value: Number, name: str) -> Decimal:
    """Validate a quantity or rate: non-negative, below 10^12, at most ten decimal places."""
    result = non_negative(value, name)
    if result >= MAX_LINE_VALUE:
        raise ValidationError(f"{name} must be below {MAX_LINE_VALUE:,f}, got {result}")
    return _check_places(result, name)


def validate_tax_rate(tax_rate: Number) -> Decimal:
    rate = to_decimal(tax_rate, "tax_rate")
    if not ZERO <= rate <= HUNDRED:
        raise ValidationError(f"tax_rate must be between 0 and 100, got {rate}")
    return _check_places(rate, "tax_rate")


def item_amount(quantity: Number, rate: Number) -> Decimal:
    """Return ``quantity * rate``. Negative inputs are rejected."""
    quantity, rate = line_value(quantity, "quantity"), line_value(rate, "rate")
    with localcontext(MONEY_CONTEXT):
        return quantity * rate


def subtotal(items: Iterable[InvoiceItem]) -> Decimal:
    """Sum of item amounts; an empty sequence gives 0."""
    with localcontext(MONEY_CONTEXT):
        return sum((item.amount for item in items), ZERO)


def tax_amount(subtotal_value: Number, tax_rate: Number) -> Decimal:
    """Return ``subtotal * tax_rate / 100``."""
    base = non_negative(subtotal_value, "subtotal")
    rate = validate_tax_rate(tax_rate)
    with localcontext(MONEY_CONTEXT):
        return base * rate / HUNDRED


def total(subtotal_value: Number, tax: Number) -> Decimal:
    """Return ``subtotal + tax``."""
    base = non_negative(subtotal_value, "subtotal")
    tax = non_negative(tax, "tax_amount")
    with localcontext(MONEY_CONTEXT):
        return base + tax


def recompute(
    invoice: Invoice,
    items: Optional[Sequence[InvoiceItem]] = None,
    tax_rate: Optional[Number] = None,
) -> Invoice:
    """Return a copy of ``invoice`` with the whole total chain re-derived.

    ``items`` and ``tax_rate`` replace the invoice's own values when given.
    Subtotal, tax and total are always computed from the full item list,
    never patched from the previous totals.
    """
    new_items = tuple(invoice.items if items is None else items)
    rate = validate_tax_rate(invoice.tax_rate if tax_rate is None else tax_rate)

    sub = subtotal(new_items)
    tax = tax_amount(sub, rate)
    return invoice.model_copy(update={
        "items": new_items,
        "tax_rate": rate,
        "subtotal": sub,
        "tax_amount": tax,
        "total": total(sub, tax),
    })


def totals_consistent(invoice: Invoice) -> bool:
    """True when the invoice's stored totals match its items and tax rate."""
    with localcontext(MONEY_CONTEXT):
        sub = subtotal(invoice.items)
        tax = sub * invoice.tax_rate / HUNDRED
        return (
            invoice.subtotal == sub
            and invoice.tax_amount == tax
            and invoice.total == sub + tax
        )
