"""Folio — invoice builder
Streamlit UI: dashboard, invoice editor with live preview, and analytics.
"""

import io
import logging
import os
import sys
from datetime import datetime

import streamlit as st
import streamlit.components.v1 as components

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from folio.config import config
from folio.errors import FolioError
from folio.models.invoices import Currency, InvoiceStatus, RecurringFrequency, Template
from folio.tools import editor
from folio.tools.currency import format_currency
from folio.tools.editor import can_transition
from folio.tools.invoice_tools import InvoiceTools
from folio.tools.pdf import render_invoice_pdf
from folio.tools.printing import BrowserSink, document_filename, print_invoice
from folio.tools.renderer import render_invoice_html
from folio.tools.sharing import compose_email

# ── Logging ─────────────────────────────────────────────────────────
logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(message)s")
logger = logging.getLogger(__name__)

# ── Page Config ─────────────────────────────────────────────────────
st.set_page_config(
    page_title=f"Folio — {config.BUSINESS_NAME}",
    page_icon="🧾",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── Session State Init ──────────────────────────────────────────────


def init_session_state():
    if "tools" not in st.session_state:
        st.session_state.tools = InvoiceTools()
    if "view" not in st.session_state:
        st.session_state.view = "Dashboard"
    if "draft" not in st.session_state:
        st.session_state.draft = None


init_session_state()
tools: InvoiceTools = st.session_state.tools


def apply(operation, *args, **kwargs):
    """Run an editor operation on the draft, surfacing validation errors."""
    try:
        st.session_state.draft = operation(st.session_state.draft, *args, **kwargs)
    except FolioError as e:
        st.error(str(e))


def open_editor(invoice):
    st.session_state.draft = invoice
    st.session_state.view = "Editor"


# ── Sidebar ─────────────────────────────────────────────────────────

with st.sidebar:
    st.markdown("# 🧾 Folio")
    st.markdown(f"**{config.BUSINESS_NAME}**")
    st.divider()
    st.session_state.view = st.radio(
        "View", ["Dashboard", "Editor", "Analytics"],
        index=["Dashboard", "Editor", "Analytics"].index(st.session_state.view),
    )
    if st.button("➕ New Invoice", use_container_width=True):
        open_editor(tools.create_invoice())
        st.rerun()

# ── Dashboard ───────────────────────────────────────────────────────

if st.session_state.view == "Dashboard":
    st.markdown("## Invoice Dashboard")
    col_search, col_status = st.columns([3, 1])
    with col_search:
        search = st.text_input("Search", placeholder="Invoice number, client or sender")
    with col_status:
        status = st.selectbox("Status", ["all"] + [s.value for s in InvoiceStatus])

    invoices = tools.list_invoices(search=search or None, status=None if status == "all" else status)
    if not invoices:
        st.info("No invoices yet")

    for invoice in invoices:
        with st.container(border=True):
            col_info, col_total, col_actions = st.columns([3, 2, 3])
            with col_info:
                st.markdown(f"**#{invoice.invoice_number}** · {invoice.to_name or '—'}")
                st.caption(f"{invoice.invoice_date.isoformat()} · due {invoice.due_date.isoformat()}")
            with col_total:
                st.markdown(f"**{format_currency(invoice.total, invoice.currency)}**")
                st.caption(invoice.status.value.upper())
            with col_actions:
                c1, c2, c3, c4 = st.columns(4)
                if c1.button("Edit", key=f"edit_{invoice.id}"):
                    open_editor(invoice)
                    st.rerun()
                if can_transition(invoice.status, InvoiceStatus.PAID) and c2.button("Paid", key=f"paid_{invoice.id}"):
                    tools.mark_paid(invoice.id)
                    st.rerun()
                if c3.button("Print", key=f"print_{invoice.id}"):
                    try:
                        path = print_invoice(invoice, BrowserSink(tools.output_dir))
                        st.caption(f"Opened {path} for printing")
                    except FolioError as e:
                        st.error(str(e))
                if c4.button("Delete", key=f"del_{invoice.id}"):
                    tools.delete_invoice(invoice.id)
                    st.rerun()

# ── Editor ──────────────────────────────────────────────────────────

elif st.session_state.view == "Editor":
    if st.session_state.draft is None:
        st.info("Create a new invoice or pick one from the dashboard.")
        st.stop()

    draft = st.session_state.draft
    st.markdown(f"## Invoice #{draft.invoice_number}")
    form_col, preview_col = st.columns([1, 1])

    with form_col:
        c1, c2, c3 = st.columns(3)
        currency = c1.selectbox("Currency", [c.value for c in Currency], index=list(Currency).index(draft.currency))
        template = c2.selectbox("Template", [t.value for t in Template], index=list(Template).index(draft.template))
        target = c3.selectbox("Status", [s.value for s in InvoiceStatus], index=list(InvoiceStatus).index(draft.status))
        if currency != draft.currency.value:
            apply(editor.set_currency, currency)
        if template != draft.template.value:
            apply(editor.set_template, template)
        if target != draft.status.value:
            apply(editor.transition_status, target)

        d1, d2 = st.columns(2)
        issued = d1.date_input("Date", value=draft.invoice_date)
        due = d2.date_input("Due date", value=draft.due_date)
        if issued != draft.invoice_date or due != draft.due_date:
            apply(editor.set_dates, invoice_date=issued, due_date=due)

        details = {}
        p1, p2 = st.columns(2)
        for column, prefix, title in ((p1, "from", "From"), (p2, "to", "Bill To")):
            with column:
                st.markdown(f"**{title}**")
                for field in ("name", "email", "phone", "address"):
                    key = f"{prefix}_{field}"
                    widget = st.text_area if field == "address" else st.text_input
                    details[key] = widget(field.capitalize(), value=getattr(draft, key), key=f"{draft.id}_{key}")

        st.markdown("**Items**")
        for item in st.session_state.draft.items:
            i1, i2, i3, i4 = st.columns([4, 1, 2, 1])
            description = i1.text_input("Description", value=item.description, key=f"desc_{item.id}")
            quantity = i2.number_input("Qty", min_value=0.0, value=float(item.quantity), key=f"qty_{item.id}")
            rate = i3.number_input("Rate", min_value=0.0, value=float(item.rate), key=f"rate_{item.id}")
            if description != item.description:
                apply(editor.set_item_description, item.id, description)
            if quantity != float(item.quantity):
                apply(editor.set_item_quantity, item.id, quantity)
            if rate != float(item.rate):
                apply(editor.set_item_rate, item.id, rate)
            if i4.button("🗑️", key=f"rm_{item.id}"):
                apply(editor.remove_item, item.id)
                st.rerun()
        if st.button("➕ Add item"):
            apply(editor.add_item)
            st.rerun()

        tax_rate = st.number_input(
            "Tax rate (%)", min_value=0.0, max_value=100.0, value=float(st.session_state.draft.tax_rate),
        )
        if tax_rate != float(st.session_state.draft.tax_rate):
            apply(editor.set_tax_rate, tax_rate)

        for key, label in (("notes", "Notes"), ("terms", "Terms & Conditions"),
                           ("payment_instructions", "Payment Instructions")):
            details[key] = st.text_area(label, value=getattr(draft, key), key=f"{draft.id}_{key}")
        changed = {k: v for k, v in details.items() if v != getattr(st.session_state.draft, k)}
        if changed:
            apply(editor.update_details, changed)

        frequencies = ["none"] + [f.value for f in RecurringFrequency]
        current = draft.recurring_frequency.value if draft.recurring_frequency else "none"
        frequency = st.selectbox("Repeats", frequencies, index=frequencies.index(current))
        if frequency != current:
            apply(editor.set_recurring, None if frequency == "none" else frequency)

        if st.button("💾 Save", type="primary", use_container_width=True):
            tools.save_invoice(st.session_state.draft)
            st.success("Invoice saved successfully!")

    with preview_col:
        invoice = st.session_state.draft
        document = render_invoice_html(invoice, generated_on=datetime.now().date())
        components.html(document, height=900, scrolling=True)

        buffer = io.BytesIO()
        render_invoice_pdf(invoice, buffer)
        b1, b2 = st.columns(2)
        b1.download_button("⬇️ HTML", document, file_name=document_filename(invoice), mime="text/html")
        b2.download_button("⬇️ PDF", buffer.getvalue(), file_name=document_filename(invoice, "pdf"),
                           mime="application/pdf")

        with st.expander("📧 Email draft"):
            st.text(compose_email(invoice).to_preview())
        if invoice.shareable_link:
            st.caption(f"Share: {invoice.shareable_link}")

# ── Analytics ───────────────────────────────────────────────────────

else:
    analytics = tools.get_analytics()
    money = lambda value: format_currency(value, analytics.primary_currency)  # noqa: E731

    st.markdown("## Analytics")
    m1, m2, m3 = st.columns(3)
    m1.metric("Total Invoices", analytics.count)
    m2.metric("Total Revenue", money(analytics.total_revenue))
    m3.metric("This Month", money(analytics.this_month_revenue))
    m4, m5, m6 = st.columns(3)
    m4.metric("Paid Revenue", money(analytics.paid_revenue))
    m5.metric("Pending Revenue", money(analytics.pending_revenue))
    m6.metric("Overdue Invoices", analytics.overdue_count)

    s_col, r_col = st.columns(2)
    with s_col:
        st.markdown("### Invoice Status")
        for status, entry in analytics.status_breakdown.items():
            st.markdown(f"{status.value.capitalize()}: **{entry.count}** ({entry.percentage}%)")
    with r_col:
        st.markdown("### Recent Invoices")
        for invoice in analytics.recent:
            st.markdown(
                f"**#{invoice.invoice_number}** {invoice.to_name} — "
                f"{format_currency(invoice.total, invoice.currency)} · {invoice.status.value}"
            )
        if not analytics.recent:
            st.caption("No invoices yet")

# ── Footer ──────────────────────────────────────────────────────────
st.divider()
st.caption(f"Folio v0.1 · {config.BUSINESS_NAME}")
