from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from folio.models.invoices import Invoice, InvoiceItem
from folio.tools.calculations import recompute
from folio.tools.invoice_tools import InvoiceTools

NOW = datetime(2026, 3, 15, 10, 30)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_invoice():
    """Build a computed invoice. ``items`` is a list of (quantity, rate) pairs."""

    def _make(
        items=((1, 100),),
        tax_rate=0,
        status="draft",
        currency="INR",
        invoice_date: date = NOW.date(),
        due_date: date | None = None,
        created_at: datetime = NOW,
        **fields,
    ) -> Invoice:
        invoice = Invoice(
            invoice_number=fields.pop("invoice_number", "INV-202603-001"),
            invoice_date=invoice_date,
            due_date=due_date or invoice_date + timedelta(days=30),
            items=tuple(
                InvoiceItem(description=f"Item {n}", quantity=Decimal(str(q)), rate=Decimal(str(r)))
                for n, (q, r) in enumerate(items, start=1)
            ),
            tax_rate=Decimal(str(tax_rate)),
            status=status,
            currency=currency,
            created_at=created_at,
            updated_at=created_at,
            **fields,
        )
        return recompute(invoice)

    return _make


@pytest.fixture
def store(tmp_path) -> InvoiceTools:
    return InvoiceTools(db_path=str(tmp_path / "folio_test.db"), output_dir=str(tmp_path / "out"))
