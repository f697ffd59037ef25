"""Data models for cross-invoice analytics."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from folio.models.invoices import Currency, Invoice, InvoiceStatus, Money


class StatusCount(BaseModel):
    """Count and share of invoices in one status."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    percentage: int = Field(default=0, description="Share of all invoices, rounded to the nearest integer")


class InvoiceAnalytics(BaseModel):
    """Summary statistics over a collection of invoices."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    total_revenue: Money = Decimal("0")
    paid_revenue: Money = Decimal("0")
    pending_revenue: Money = Decimal("0")
    this_month_revenue: Money = Decimal("0")
    overdue_revenue: Money = Decimal("0")
    overdue: tuple[Invoice, ...] = ()
    status_breakdown: dict[InvoiceStatus, StatusCount] = Field(default_factory=dict)
    primary_currency: Currency = Currency.INR
    recent: tuple[Invoice, ...] = ()

    @property
    def overdue_count(self) -> int:
        return len(self.overdue)

    def to_summary(self) -> str:
        """Human-readable summary, amounts in the primary currency."""
        from folio.tools.currency import format_currency

        def money(value: Decimal) -> str:
            return format_currency(value, self.primary_currency)

        lines = [
            f"📊 **{self.count} invoice(s)**",
            f"  Total revenue: {money(self.total_revenue)}",
            f"  This month: {money(self.this_month_revenue)}",
            f"  Paid: {money(self.paid_revenue)}",
            f"  Pending: {money(self.pending_revenue)}",
            f"  Overdue: {self.overdue_count} ({money(self.overdue_revenue)})",
        ]
        for status, entry in self.status_breakdown.items():
            lines.append(f"  {status.value.capitalize()}: {entry.count} ({entry.percentage}%)")
        return "\n".join(lines)
