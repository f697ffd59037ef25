from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from folio.models.invoices import Currency, InvoiceStatus
from folio.tools.analytics import compute_analytics, percentage, primary_currency, recent_invoices


def test_paid_and_pending_revenue(make_invoice, now):
    invoices = [
        make_invoice(items=[(1, 100)], status="paid"),
        make_invoice(items=[(1, 50)], status="sent"),
    ]
    stats = compute_analytics(invoices, now)

    assert stats.count == 2
    assert stats.total_revenue == Decimal("150")
    assert stats.paid_revenue == Decimal("100")
    assert stats.pending_revenue == Decimal("50")
    assert stats.status_breakdown[InvoiceStatus.PAID].count == 1
    assert stats.status_breakdown[InvoiceStatus.PAID].percentage == 50
    assert stats.status_breakdown[InvoiceStatus.SENT].percentage == 50
    assert stats.status_breakdown[InvoiceStatus.DRAFT].count == 0


def test_empty_collection_gives_zeroed_statistics(now):
    stats = compute_analytics([], now)

    assert stats.count == 0
    assert stats.total_revenue == stats.paid_revenue == stats.pending_revenue == Decimal("0")
    assert stats.this_month_revenue == stats.overdue_revenue == Decimal("0")
    assert stats.overdue == () and stats.recent == ()
    assert all(entry.count == 0 and entry.percentage == 0 for entry in stats.status_breakdown.values())
    assert stats.primary_currency is Currency.INR


def test_breakdown_lists_every_status_in_order(make_invoice, now):
    stats = compute_analytics([make_invoice()], now)
    assert list(stats.status_breakdown) == [InvoiceStatus.PAID, InvoiceStatus.SENT, InvoiceStatus.DRAFT]


def test_percentages_round_to_nearest_integer(make_invoice, now):
    invoices = [make_invoice(status="paid"), make_invoice(status="sent"), make_invoice(status="draft")]
    stats = compute_analytics(invoices, now)
    assert [entry.percentage for entry in stats.status_breakdown.values()] == [33, 33, 33]

    assert percentage(1, 8) == 13
    assert percentage(2, 3) == 67
    assert percentage(0, 0) == 0


def test_this_month_revenue_uses_invoice_date(make_invoice, now):
    invoices = [
        make_invoice(items=[(1, 100)], invoice_date=date(2026, 3, 1)),
        make_invoice(items=[(1, 40)], invoice_date=date(2026, 3, 31)),
        make_invoice(items=[(1, 999)], invoice_date=date(2026, 2, 28)),
        make_invoice(items=[(1, 999)], invoice_date=date(2025, 3, 15)),
    ]
    assert compute_analytics(invoices, now).this_month_revenue == Decimal("140")


def test_overdue_excludes_paid_and_due_today(make_invoice, now):
    yesterday = now.date() - timedelta(days=1)
    invoices = [
        make_invoice(items=[(1, 10)], status="sent", invoice_date=date(2026, 1, 1), due_date=yesterday),
        make_invoice(items=[(1, 20)], status="draft", invoice_date=date(2026, 1, 1), due_date=yesterday),
        make_invoice(items=[(1, 30)], status="paid", invoice_date=date(2026, 1, 1), due_date=yesterday),
        make_invoice(items=[(1, 40)], status="sent", invoice_date=date(2026, 1, 1), due_date=now.date()),
    ]
    stats = compute_analytics(invoices, now)

    assert [invoice.total for invoice in stats.overdue] == [Decimal("10"), Decimal("20")]
    assert stats.overdue_count == 2
    assert stats.overdue_revenue == Decimal("30")


def test_primary_currency_is_most_common(make_invoice):
    invoices = [make_invoice(currency="USD"), make_invoice(currency="USD"), make_invoice(currency="GBP")]
    assert primary_currency(invoices) is Currency.USD


def test_primary_currency_tie_goes_to_smallest_code(make_invoice):
    invoices = [make_invoice(currency="USD"), make_invoice(currency="EUR")]
    assert primary_currency(invoices) is Currency.EUR
    assert primary_currency(list(reversed(invoices))) is Currency.EUR


def test_recent_is_newest_first_and_limited(make_invoice):
    invoices = [
        make_invoice(invoice_number=f"INV-202603-{n:03}", created_at=datetime(2026, 3, n, 9, 0))
        for n in range(1, 8)
    ]
    recent = recent_invoices(invoices)
    assert [i.invoice_number for i in recent] == [f"INV-202603-{n:03}" for n in (7, 6, 5, 4, 3)]


def test_recent_keeps_collection_order_for_equal_timestamps(make_invoice):
    stamp = datetime(2026, 3, 10, 12, 0)
    invoices = [make_invoice(invoice_number=f"INV-202603-{n:03}", created_at=stamp) for n in (3, 1, 2)]
    assert [i.invoice_number for i in recent_invoices(invoices, 2)] == ["INV-202603-003", "INV-202603-001"]


def test_collection_is_not_mutated(make_invoice, now):
    invoices = [make_invoice(created_at=datetime(2026, 3, 1)), make_invoice(created_at=datetime(2026, 3, 9))]
    before = list(invoices)
    compute_analytics(invoices, now)
    assert invoices == before


def test_accepts_any_iterable(make_invoice, now):
    stats = compute_analytics((make_invoice() for _ in range(3)), now)
    assert stats.count == 3
    assert len(stats.recent) == 3


def test_summary_uses_primary_currency(make_invoice, now):
    stats = compute_analytics([make_invoice(items=[(1, 1234.5)], currency="USD", status="paid")], now)
    summary = stats.to_summary()
    assert "$1,234.50" in summary
    assert "Paid: 1 (100%)" in summary


def test_mixed_naive_and_aware_timestamps(make_invoice):
    utc = make_invoice(invoice_number="INV-202603-001", created_at=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
    local = make_invoice(invoice_number="INV-202603-002", created_at=datetime(2026, 3, 10, 9, 0))
    stats = compute_analytics([utc, local], datetime(2026, 3, 15, 10, 30, tzinfo=timezone.utc))
    assert [i.invoice_number for i in stats.recent] == ["INV-202603-002", "INV-202603-001"]
