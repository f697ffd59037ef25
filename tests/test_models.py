from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pydantic
import pytest

from folio.models.invoices import Invoice, InvoiceItem, InvoiceStatus


def test_camel_case_keys_are_accepted():
    invoice = Invoice.model_validate({
        "invoiceNumber": "INV-202601-001",
        "date": "2026-01-05",
        "dueDate": "2026-02-04",
        "taxRate": 5,
        "createdAt": "2026-01-05T10:00:00",
        "updatedAt": "2026-01-05T10:00:00",
        "isRecurring": True,
        "recurringFrequency": "monthly",
    })
    assert invoice.invoice_number == "INV-202601-001"
    assert invoice.invoice_date == date(2026, 1, 5)
    assert invoice.tax_rate == Decimal("5")
    assert invoice.is_recurring


def test_field_names_are_accepted_too(make_invoice):
    assert make_invoice().invoice_date == date(2026, 3, 15)


def test_item_amount_is_derived_and_input_amount_ignored():
    item = InvoiceItem.model_validate({"quantity": 3, "rate": "2.5", "amount": 1})
    assert item.amount == Decimal("7.5")


def test_item_defaults():
    item = InvoiceItem()
    assert item.quantity == Decimal("1")
    assert item.rate == Decimal("0")
    assert item.id != InvoiceItem().id


@pytest.mark.parametrize("field", ["quantity", "rate"])
def test_negative_item_values_are_rejected(field):
    with pytest.raises(pydantic.ValidationError):
        InvoiceItem(**{field: -1})


def test_tax_rate_bounds(make_invoice):
    with pytest.raises(pydantic.ValidationError):
        make_invoice(tax_rate=101)


def test_invoices_are_frozen(make_invoice):
    invoice = make_invoice()
    with pytest.raises(pydantic.ValidationError):
        invoice.total = Decimal("1")


def test_json_dump_uses_camel_case_and_plain_numbers(make_invoice):
    data = make_invoice(items=[(2, "19.99")], tax_rate=18).model_dump(mode="json", by_alias=True)
    assert data["invoiceNumber"] == "INV-202603-001"
    assert data["date"] == "2026-03-15"
    assert data["subtotal"] == pytest.approx(39.98)
    assert data["items"][0]["amount"] == pytest.approx(39.98)


def test_item_lookup(make_invoice):
    invoice = make_invoice(items=[(1, 10), (2, 20)])
    second = invoice.items[1]
    assert invoice.item(second.id) is second
    assert invoice.item("missing") is None


def test_preview(make_invoice):
    invoice = make_invoice(items=[(2, 100)], tax_rate=18, status="sent", to_name="Globex", notes="Thanks")
    preview = invoice.to_preview()
    assert "Invoice INV-202603-001" in preview
    assert "SENT" in preview
    assert "To: Globex" in preview
    assert "₹236.00" in preview
    assert "Notes: Thanks" in preview
    assert invoice.status is InvoiceStatus.SENT


@pytest.mark.parametrize("field", ["subtotal", "tax_amount", "total"])
def test_negative_totals_are_rejected(make_invoice, field):
    data = make_invoice().model_dump()
    with pytest.raises(pydantic.ValidationError):
        Invoice.model_validate({**data, field: Decimal("-5")})


def test_line_values_are_bounded():
    with pytest.raises(pydantic.ValidationError):
        InvoiceItem(quantity=Decimal("1e12"))
    with pytest.raises(pydantic.ValidationError):
        InvoiceItem(rate=Decimal("0.00000000001"))


def test_aware_timestamps_become_naive_local_time(make_invoice):
    stamp = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    invoice = make_invoice(created_at=stamp)
    assert invoice.created_at.tzinfo is None
    assert invoice.created_at == stamp.astimezone().replace(tzinfo=None)
