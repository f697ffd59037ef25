"""Local invoice store and the operations the host app performs on it.

Invoices are kept in SQLite, one row per invoice keyed by id, holding the full
invoice JSON plus a few columns for ordering and filtering. The pure core
(calculations, formatting, rendering, analytics) never imports this module.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from datetime import date, datetime
from typing import Any, Optional, Union

from pydantic import TypeAdapter

from folio.config import config
from folio.errors import InvoiceNotFoundError
from folio.models.analytics import InvoiceAnalytics
from folio.models.invoices import Invoice, InvoiceStatus, Template
from folio.tools import editor
from folio.tools.analytics import compute_analytics
from folio.tools.calculations import recompute
from folio.tools.numbering import InvoiceNumberSequence
from folio.tools.pdf import render_invoice_pdf
from folio.tools.printing import FileSink, document_filename, print_invoice

logger = logging.getLogger(__name__)

_INVOICE_LIST = TypeAdapter(list[Invoice])


class InvoiceTools:
    """Handles invoice persistence, numbering and exports."""

    def __init__(self, db_path: Optional[str] = None, output_dir: Optional[str] = None):
        self.db_path = db_path or config.DB_PATH
        self.output_dir = output_dir or config.INVOICE_OUTPUT_DIR
        self._init_db()
        self._numbers = InvoiceNumberSequence(self._issued_numbers())

    # ── Database Setup ──────────────────────────────────────────────

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Initialize SQLite table for invoices."""
        conn = self._connect()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS invoices (
                id TEXT PRIMARY KEY,
                invoice_number TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'draft',
                invoice_date TEXT NOT NULL,
                created_at TEXT NOT NULL,
                position INTEGER NOT NULL,
                data TEXT NOT NULL
            )
        """)
        conn.commit()
        conn.close()
        logger.info(f"Invoice database initialized at {self.db_path}")

    def _issued_numbers(self) -> list[str]:
        conn = self._connect()
        rows = conn.execute("SELECT invoice_number FROM invoices").fetchall()
        conn.close()
        return [row["invoice_number"] for row in rows]

    # ── Invoice CRUD ────────────────────────────────────────────────

    def create_invoice(self, now: Optional[datetime] = None, **defaults: Any) -> Invoice:
        """Create, number and save a new draft invoice.

        ``defaults`` are passed to ``editor.new_invoice`` (currency, template,
        tax_rate, due_in_days, share_base_url).
        """
        now = now or datetime.now()
        invoice = editor.new_invoice(now, number=self._numbers.next(now), **defaults)
        self.save_invoice(invoice)
        logger.info(f"Created invoice {invoice.invoice_number} ({invoice.id})")
        return invoice

    def save_invoice(self, invoice: Invoice) -> Invoice:
        """Insert or replace ``invoice``. Existing rows keep their list position."""
        conn = self._connect()
        row = conn.execute(
            "SELECT position FROM invoices WHERE id = ?", (invoice.id,)
        ).fetchone()
        if row:
            position = row["position"]
        else:
            position = conn.execute(
                "SELECT COALESCE(MAX(position), -1) + 1 FROM invoices"
            ).fetchone()[0]

        conn.execute(
            """INSERT OR REPLACE INTO invoices
            (id, invoice_number, status, invoice_date, created_at, position, data)
            VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                invoice.id,
                invoice.invoice_number,
                invoice.status.value,
                invoice.invoice_date.isoformat(),
                invoice.created_at.isoformat(),
                position,
                invoice.model_dump_json(by_alias=True),
            ),
        )
        conn.commit()
        conn.close()
        self._numbers.observe(invoice.invoice_number)
        return invoice

    def get_invoice(self, invoice_id: str) -> Invoice:
        conn = self._connect()
        row = conn.execute(
            "SELECT data FROM invoices WHERE id = ?", (invoice_id,)
        ).fetchone()
        conn.close()

        if not row:
            raise InvoiceNotFoundError(f"Invoice not found: {invoice_id}")
        return Invoice.model_validate_json(row["data"])

    def delete_invoice(self, invoice_id: str) -> None:
        conn = self._connect()
        deleted = conn.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,)).rowcount
        conn.commit()
        conn.close()

        if deleted == 0:
            raise InvoiceNotFoundError(f"Invoice not found: {invoice_id}")
        logger.info(f"Deleted invoice {invoice_id}")

    def list_invoices(
        self,
        search: Optional[str] = None,
        status: Union[str, InvoiceStatus, None] = None,
        start_date: Union[str, date, None] = None,
        end_date: Union[str, date, None] = None,
    ) -> list[Invoice]:
        """List invoices in the order they were first saved.

        Args:
            search: Case-insensitive text matched against invoice number,
                client name and sender name.
            status: Only invoices in this status.
            start_date / end_date: Inclusive invoice-date range (ISO strings or dates).
        """
        query = "SELECT data FROM invoices WHERE 1=1"
        params: list = []

        if status:
            query += " AND status = ?"
            params.append(InvoiceStatus(status).value)
        if start_date:
            query += " AND invoice_date >= ?"
            params.append(str(start_date))
        if end_date:
            query += " AND invoice_date <= ?"
            params.append(str(end_date))

        query += " ORDER BY position"
        conn = self._connect()
        rows = conn.execute(query, params).fetchall()
        conn.close()

        invoices = [Invoice.model_validate_json(row["data"]) for row in rows]
        if search:
            term = search.strip().lower()
            invoices = [
                invoice for invoice in invoices
                if term in invoice.invoice_number.lower()
                or term in invoice.to_name.lower()
                or term in invoice.from_name.lower()
            ]
        return invoices

    def mark_paid(self, invoice_id: str, now: Optional[datetime] = None) -> Invoice:
        """Move a sent invoice to paid and save it."""
        invoice = editor.transition_status(self.get_invoice(invoice_id), InvoiceStatus.PAID, now=now)
        return self.save_invoice(invoice)

    # ── Import / Export ─────────────────────────────────────────────

    def import_json(self, text: str) -> list[Invoice]:
        """Load a JSON array of invoices (the browser app's saved list).

        Totals are re-derived from the items on the way in; stored totals
        are not trusted.
        """
        invoices = [recompute(invoice) for invoice in _INVOICE_LIST.validate_json(text)]
        for invoice in invoices:
            self.save_invoice(invoice)
        logger.info(f"Imported {len(invoices)} invoice(s)")
        return invoices

    def export_json(self) -> str:
        """All invoices as a JSON array in the browser app's camelCase layout."""
        return json.dumps(
            [invoice.model_dump(mode="json", by_alias=True) for invoice in self.list_invoices()],
            ensure_ascii=False,
            indent=2,
        )

    def export_html(self, invoice_id: str, template: Union[str, Template, None] = None) -> str:
        """Render the invoice to an HTML file in the output directory. Returns the path."""
        invoice = self.get_invoice(invoice_id)
        return print_invoice(invoice, FileSink(self.output_dir), template)

    def export_pdf(self, invoice_id: str, template: Union[str, Template, None] = None) -> str:
        """Render the invoice to a PDF file in the output directory. Returns the path."""
        invoice = self.get_invoice(invoice_id)
        os.makedirs(self.output_dir, exist_ok=True)
        filepath = os.path.join(self.output_dir, document_filename(invoice, "pdf"))
        render_invoice_pdf(invoice, filepath, template)
        return filepath

    # ── Analytics ───────────────────────────────────────────────────

    def get_analytics(self, now: Optional[datetime] = None) -> InvoiceAnalytics:
        return compute_analytics(self.list_invoices(), now=now)
