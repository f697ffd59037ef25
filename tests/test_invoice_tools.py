from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from folio.errors import InvalidTransitionError, InvoiceNotFoundError
from folio.models.invoices import Currency, InvoiceStatus
from folio.tools import editor
from folio.tools.analytics import recent_invoices
from folio.tools.invoice_tools import InvoiceTools

BROWSER_EXPORT = json.dumps([
    {
        "id": "1717000000000",
        "invoiceNumber": "INV-202601-010",
        "date": "2026-01-05",
        "dueDate": "2026-02-04",
        "fromName": "Acme Studio",
        "fromEmail": "",
        "fromPhone": "",
        "fromAddress": "",
        "toName": "Globex",
        "toEmail": "ap@globex.test",
        "toPhone": "",
        "toAddress": "",
        "items": [
            {"id": "1", "description": "Design", "quantity": 2, "rate": 100, "amount": 999},
            {"id": "2", "description": "Hosting", "quantity": 1, "rate": 50, "amount": 50},
        ],
        "subtotal": 0,
        "taxRate": 18,
        "taxAmount": 0,
        "total": 0,
        "currency": "USD",
        "notes": "",
        "terms": "",
        "paymentInstructions": "",
        "status": "sent",
        "createdAt": "2026-01-05T10:00:00.000Z",
        "updatedAt": "2026-01-05T10:00:00.000Z",
        "template": "classic",
    }
])


def test_create_numbers_sequentially(store, now):
    first = store.create_invoice(now)
    second = store.create_invoice(now)
    assert first.invoice_number == "INV-202603-001"
    assert second.invoice_number == "INV-202603-002"
    assert first.status is InvoiceStatus.DRAFT


def test_sequence_survives_reopening_the_store(store, now, tmp_path):
    store.create_invoice(now)
    store.create_invoice(now)
    reopened = InvoiceTools(db_path=store.db_path, output_dir=str(tmp_path / "out"))
    assert reopened.create_invoice(now).invoice_number == "INV-202603-003"


def test_create_passes_defaults_through(store, now):
    invoice = store.create_invoice(now, currency="GBP", template="minimal", tax_rate=20)
    saved = store.get_invoice(invoice.id)
    assert saved.currency is Currency.GBP
    assert saved.template.value == "minimal"
    assert saved.tax_rate == Decimal("20")


def test_save_and_get_round_trip_keeps_decimals(store, now):
    invoice = store.create_invoice(now)
    invoice = editor.set_item_rate(invoice, invoice.items[0].id, "19.99", now=now)
    invoice = editor.set_item_quantity(invoice, invoice.items[0].id, 3, now=now)
    store.save_invoice(invoice)

    loaded = store.get_invoice(invoice.id)
    assert loaded == invoice
    assert loaded.subtotal == Decimal("59.97")


def test_save_keeps_list_position(store, now):
    first = store.create_invoice(now)
    second = store.create_invoice(now)
    store.save_invoice(editor.update_details(first, {"to_name": "Renamed"}, now=now))
    assert [i.id for i in store.list_invoices()] == [first.id, second.id]


def test_missing_invoice_raises(store):
    with pytest.raises(InvoiceNotFoundError):
        store.get_invoice("nope")
    with pytest.raises(InvoiceNotFoundError):
        store.delete_invoice("nope")


def test_delete(store, now):
    invoice = store.create_invoice(now)
    store.delete_invoice(invoice.id)
    assert store.list_invoices() == []


def test_list_filters(store, now):
    a = store.save_invoice(editor.update_details(store.create_invoice(now), {"to_name": "Globex"}, now=now))
    b = store.create_invoice(now)
    b = store.save_invoice(editor.set_dates(b, invoice_date="2026-05-01", due_date="2026-05-31", now=now))
    c = store.save_invoice(editor.transition_status(store.create_invoice(now), "sent", now=now))

    assert [i.id for i in store.list_invoices(search="globex")] == [a.id]
    assert [i.id for i in store.list_invoices(search="-002")] == [b.id]
    assert [i.id for i in store.list_invoices(status="sent")] == [c.id]
    assert [i.id for i in store.list_invoices(start_date="2026-04-01")] == [b.id]
    assert [i.id for i in store.list_invoices(end_date=date(2026, 3, 31))] == [a.id, c.id]


def test_mark_paid_follows_the_lifecycle(store, now):
    invoice = store.create_invoice(now)
    with pytest.raises(InvalidTransitionError):
        store.mark_paid(invoice.id)

    store.save_invoice(editor.transition_status(invoice, "sent", now=now))
    paid = store.mark_paid(invoice.id, now=now + timedelta(hours=1))
    assert paid.status is InvoiceStatus.PAID
    assert store.get_invoice(invoice.id).status is InvoiceStatus.PAID
    assert [i.id for i in store.list_invoices(status="paid")] == [invoice.id]


def test_import_browser_export_recomputes_totals(store):
    [invoice] = store.import_json(BROWSER_EXPORT)

    assert invoice.invoice_number == "INV-202601-010"
    assert invoice.invoice_date == date(2026, 1, 5)
    assert invoice.to_email == "ap@globex.test"
    assert [item.amount for item in invoice.items] == [Decimal("200"), Decimal("50")]
    assert invoice.subtotal == Decimal("250")
    assert invoice.tax_amount == Decimal("45")
    assert invoice.total == Decimal("295")
    assert store.get_invoice("1717000000000") == invoice


def test_imported_numbers_advance_the_sequence(store):
    store.import_json(BROWSER_EXPORT)
    created = store.create_invoice(datetime(2026, 1, 20, 9, 0))
    assert created.invoice_number == "INV-202601-011"


def test_export_json_uses_camel_case(store, now):
    store.create_invoice(now)
    [exported] = json.loads(store.export_json())

    assert exported["invoiceNumber"] == "INV-202603-001"
    assert exported["date"] == "2026-03-15"
    assert exported["dueDate"] == "2026-04-14"
    assert exported["taxRate"] == 18
    assert "amount" in exported["items"][0]
    assert "invoice_number" not in exported


def test_export_then_import_into_a_fresh_store(store, now, tmp_path):
    invoice = store.create_invoice(now)
    invoice = store.save_invoice(editor.add_item(invoice, "Support", 4, "12.5", now=now))

    other = InvoiceTools(db_path=str(tmp_path / "other.db"), output_dir=str(tmp_path / "other"))
    [imported] = other.import_json(store.export_json())
    assert imported.total == invoice.total
    assert imported.items == invoice.items


def test_export_html(store, now):
    invoice = store.create_invoice(now)
    path = Path(store.export_html(invoice.id, template="classic"))
    assert path.name == "INV-202603-001.html"
    assert 'class="template-classic"' in path.read_text(encoding="utf-8")


def test_export_pdf(store, now):
    invoice = store.create_invoice(now)
    path = Path(store.export_pdf(invoice.id))
    assert path.name == "INV-202603-001.pdf"
    assert path.read_bytes().startswith(b"%PDF")


def test_analytics_over_stored_invoices(store, now):
    invoice = store.create_invoice(now)
    invoice = editor.set_item_rate(invoice, invoice.items[0].id, 100, now=now)
    store.save_invoice(editor.transition_status(invoice, "sent", now=now))
    store.create_invoice(now)

    stats = store.get_analytics(now)
    assert stats.count == 2
    assert stats.total_revenue == Decimal("118")
    assert stats.pending_revenue == Decimal("118")
    assert stats.status_breakdown[InvoiceStatus.SENT].count == 1


def test_imported_utc_timestamps_are_stored_as_local_time(store):
    [invoice] = store.import_json(BROWSER_EXPORT)
    expected = datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    assert invoice.created_at == expected
    assert invoice.created_at.tzinfo is None
    assert store.get_invoice(invoice.id).updated_at == expected


def test_analytics_over_imported_and_new_invoices(store, now):
    [imported] = store.import_json(BROWSER_EXPORT)
    created = store.create_invoice(now)

    stats = store.get_analytics(now)
    assert stats.count == 2
    assert [i.id for i in stats.recent] == [created.id, imported.id]
    assert stats.total_revenue == Decimal("295")
    assert [i.id for i in stats.overdue] == [imported.id]
    assert [i.id for i in recent_invoices(store.list_invoices())] == [created.id, imported.id]
