"""Analytics over a collection of invoices.

``compute_analytics`` never fails on well-formed invoices and returns zeroed
statistics for an empty collection. The collection is only read.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, Optional

from folio.config import config
from folio.models.analytics import InvoiceAnalytics, StatusCount
from folio.models.invoices import MONEY_CONTEXT, Currency, Invoice, InvoiceStatus, local_timestamp
from folio.tools.currency import resolve_currency

ZERO = Decimal("0")

# Order in which statuses are reported.
BREAKDOWN_ORDER = (InvoiceStatus.PAID, InvoiceStatus.SENT, InvoiceStatus.DRAFT)


def _sum_totals(invoices: Iterable[Invoice]) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        return sum((invoice.total for invoice in invoices), ZERO)


def _difference(whole: Decimal, part: Decimal) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        return whole - part


def percentage(count: int, whole: int) -> int:
    """``count / whole`` as a whole percentage, halves rounded up; 0 when ``whole`` is 0."""
    if whole == 0:
        return 0
    share = Decimal(count * 100) / Decimal(whole)
    return int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def status_breakdown(invoices: list[Invoice]) -> dict[InvoiceStatus, StatusCount]:
    counts = Counter(invoice.status for invoice in invoices)
    return {
        status: StatusCount(count=counts[status], percentage=percentage(counts[status], len(invoices)))
        for status in BREAKDOWN_ORDER
    }


def primary_currency(invoices: Iterable[Invoice], default: Optional[Currency] = None) -> Currency:
    """Most used currency. Ties go to the alphabetically smallest code.

    An empty collection gives ``default`` (the configured default currency).
    """
    counts = Counter(invoice.currency for invoice in invoices)
    if not counts:
        return default or resolve_currency(config.DEFAULT_CURRENCY).currency
    best = max(counts.values())
    return min((c for c, n in counts.items() if n == best), key=lambda c: c.value)


def recent_invoices(invoices: list[Invoice], limit: Optional[int] = None) -> tuple[Invoice, ...]:
    """The ``limit`` most recently created invoices, newest first.

    Equal timestamps keep their order in the collection.
    """
    limit = config.RECENT_LIMIT if limit is None else limit
    ordered = sorted(invoices, key=lambda invoice: local_timestamp(invoice.created_at), reverse=True)
    return tuple(ordered[:limit])


def overdue_invoices(invoices: Iterable[Invoice], now: datetime) -> tuple[Invoice, ...]:
    """Unpaid invoices whose due date is before today."""
    today = local_timestamp(now).date()
    return tuple(
        invoice for invoice in invoices
        if invoice.status is not InvoiceStatus.PAID and invoice.due_date < today
    )


def compute_analytics(
    invoices: Iterable[Invoice],
    now: Optional[datetime] = None,
    recent_limit: Optional[int] = None,
) -> InvoiceAnalytics:
    """Summarize revenue, status mix, overdue and recent invoices.

    Args:
        invoices: The collection to summarize, in display order.
        now: Reference time for "this month" and "overdue". Defaults to now.
        recent_limit: How many recent invoices to return (default 5).
    """
    snapshot = list(invoices)
    now = local_timestamp(now or datetime.now())

    total_revenue = _sum_totals(snapshot)
    paid_revenue = _sum_totals(i for i in snapshot if i.status is InvoiceStatus.PAID)
    this_month = _sum_totals(
        i for i in snapshot
        if i.invoice_date.year == now.year and i.invoice_date.month == now.month
    )
    overdue = overdue_invoices(snapshot, now)

    return InvoiceAnalytics(
        count=len(snapshot),
        total_revenue=total_revenue,
        paid_revenue=paid_revenue,
        pending_revenue=_difference(total_revenue, paid_revenue),
        this_month_revenue=this_month,
        overdue_revenue=_sum_totals(overdue),
        overdue=overdue,
        status_breakdown=status_breakdown(snapshot),
        primary_currency=primary_currency(snapshot),
        recent=recent_invoices(snapshot, recent_limit),
    )
