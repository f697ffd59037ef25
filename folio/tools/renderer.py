"""Document renderer. Turns a computed invoice into one standalone HTML page.

Rendering is a pure function of the invoice and a template: it never
recomputes totals, never mutates the invoice and never touches a display.
Handing the finished page to a browser or printer is the job of
``folio.tools.printing``.

The three templates share one page structure and differ only in visual
parameters (accent colour, heading weight and typeface, table-header look).
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from folio.config import config
from folio.errors import UnknownTemplateError, ValidationError
from folio.models.invoices import Invoice, InvoiceItem, Template
from folio.tools.currency import format_currency, format_date

logger = logging.getLogger(__name__)

FALLBACK_TEMPLATE = Template.MODERN


@dataclass(frozen=True)
class TemplateStyle:
    """Visual parameters for one template variant."""

    accent: str
    header_border: str
    title_size: int
    title_color: str
    title_weight: int
    title_font: str = ""
    title_letter_spacing: str = ""
    th_background: str = ""
    th_color: str = "white"
    th_border: str = ""
    # ReportLab font names for the PDF export
    pdf_heading_font: str = "Helvetica-Bold"
    pdf_body_font: str = "Helvetica"

    @property
    def table_header_background(self) -> str:
        return self.th_background or self.accent

    def css(self) -> str:
        title_rules = [
            f"font-size: {self.title_size}px;",
            f"color: {self.title_color};",
            f"font-weight: {self.title_weight};",
        ]
        if self.title_font:
            title_rules.append(f"font-family: {self.title_font};")
        if self.title_letter_spacing:
            title_rules.append(f"letter-spacing: {self.title_letter_spacing};")

        th_rules = [
            f"background: {self.table_header_background};",
            f"color: {self.th_color};",
        ]
        if self.th_border:
            th_rules.append(f"border-bottom: {self.th_border};")

        return (
            ".header { border-bottom: %s; }\n"
            ".logo-section h1 { %s }\n"
            ".items-table th { %s }\n"
            ".total-row.final { border-top: 2px solid %s; }\n"
            ".notes, .terms, .payment-instructions { border-left: 4px solid %s; }\n"
        ) % (
            self.header_border,
            " ".join(title_rules),
            " ".join(th_rules),
            self.accent,
            self.accent,
        )


TEMPLATE_STYLES: dict[Template, TemplateStyle] = {
    Template.MODERN: TemplateStyle(
        accent="#3B82F6",
        header_border="3px solid #3B82F6",
        title_size=32,
        title_color="#3B82F6",
        title_weight=700,
    ),
    Template.CLASSIC: TemplateStyle(
        accent="#8B5CF6",
        header_border="2px solid #8B5CF6",
        title_size=28,
        title_color="#8B5CF6",
        title_weight=600,
        title_font="Georgia, 'Times New Roman', serif",
        pdf_heading_font="Times-Bold",
        pdf_body_font="Times-Roman",
    ),
    Template.MINIMAL: TemplateStyle(
        accent="#374151",
        header_border="1px solid #E5E7EB",
        title_size=24,
        title_color="#374151",
        title_weight=300,
        title_letter_spacing="2px",
        th_background="#F9FAFB",
        th_color="#374151",
        th_border="2px solid #E5E7EB",
    ),
}

if set(TEMPLATE_STYLES) != set(Template):
    raise RuntimeError("every Template variant needs a TemplateStyle")


def resolve_template(name: Union[str, Template, None], strict: bool = False) -> Template:
    """Map a template name to a variant.

    Unknown names fall back to ``modern`` with a logged warning, or raise
    UnknownTemplateError in strict mode.
    """
    try:
        return Template(name.strip().lower() if isinstance(name, str) else name)
    except ValueError:
        if strict:
            raise UnknownTemplateError(f"Unknown template: {name!r}") from None
        logger.warning(f"Unknown template {name!r}, falling back to {FALLBACK_TEMPLATE.value}")
        return FALLBACK_TEMPLATE


def template_style(name: Union[str, Template, None]) -> TemplateStyle:
    return TEMPLATE_STYLES[resolve_template(name)]


BASE_CSS = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  line-height: 1.6;
  color: #1F2937;
  max-width: 800px;
  margin: 0 auto;
  padding: 40px 20px;
  background: #ffffff;
}
.header {
  display: flex;
  justify-content: space-between;
  align-items: flex-start;
  margin-bottom: 40px;
  padding-bottom: 20px;
}
.company-logo { max-width: 120px; max-height: 60px; margin-bottom: 12px; }
.subtitle { color: #6B7280; font-size: 14px; }
.invoice-details { text-align: right; }
.invoice-details h2 { font-size: 24px; color: #1F2937; margin-bottom: 8px; }
.invoice-meta p { margin-bottom: 4px; font-size: 14px; }
.status { font-weight: 600; }
.status-draft { color: #6B7280; }
.status-sent { color: #2563EB; }
.status-paid { color: #059669; }
.addresses { display: flex; justify-content: space-between; margin-bottom: 40px; }
.address-block { width: 48%; }
.address-block h3 {
  font-size: 16px;
  font-weight: 600;
  color: #1F2937;
  margin-bottom: 12px;
  padding: 8px 0;
  border-bottom: 2px solid #E5E7EB;
}
.address-content p { margin-bottom: 4px; font-size: 14px; line-height: 1.5; }
.items-table {
  width: 100%;
  border-collapse: collapse;
  margin-bottom: 30px;
  background: white;
}
.items-table th { font-weight: 600; padding: 16px 12px; text-align: left; font-size: 14px; }
.items-table td { padding: 16px 12px; border-bottom: 1px solid #E5E7EB; font-size: 14px; }
.items-table tr:last-child td { border-bottom: none; }
.items-table tbody tr:nth-child(even) { background: #F9FAFB; }
.text-right { text-align: right; }
.items-table th.text-right { text-align: right; }
.totals {
  margin-left: auto;
  width: 300px;
  background: #F9FAFB;
  border-radius: 8px;
  padding: 20px;
  border: 1px solid #E5E7EB;
}
.total-row { display: flex; justify-content: space-between; margin-bottom: 12px; font-size: 14px; }
.total-row.subtotal, .total-row.tax { color: #6B7280; }
.total-row.final {
  font-size: 18px;
  font-weight: 700;
  color: #1F2937;
  padding-top: 12px;
  margin-top: 16px;
  margin-bottom: 0;
}
.notes, .terms, .payment-instructions {
  margin-top: 40px;
  padding: 20px;
  background: #F9FAFB;
  border-radius: 8px;
}
.notes h4, .terms h4, .payment-instructions h4 {
  font-size: 16px;
  font-weight: 600;
  color: #1F2937;
  margin-bottom: 8px;
}
.notes p, .terms p, .payment-instructions p { font-size: 14px; color: #6B7280; line-height: 1.6; }
.footer {
  margin-top: 60px;
  text-align: center;
  font-size: 12px;
  color: #9CA3AF;
  border-top: 1px solid #E5E7EB;
  padding-top: 20px;
}
@media print {
  body { padding: 20px; }
  .header, .items-table { break-inside: avoid; }
}
"""


def _esc(value: object) -> str:
    return html.escape(str(value), quote=True)


def _multiline(value: str) -> str:
    return "<br>".join(_esc(line) for line in value.splitlines())


def format_number(value: Decimal) -> str:
    """Plain decimal text without exponent or trailing zeros: 2, 2.5, 18."""
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def embeddable_logo(logo: Optional[str]) -> Optional[str]:
    """Return ``logo`` if it is an inline image data URI, else None."""
    if not logo:
        return None
    if logo.startswith("data:image/"):
        return logo
    logger.warning("Ignoring company logo that is not an inline data:image URI")
    return None


def check_totals(invoice: Invoice) -> None:
    """Refuse to render negative or non-finite totals; they are shown as stored."""
    for name in ("subtotal", "tax_amount", "total"):
        value = getattr(invoice, name)
        if not value.is_finite() or value < 0:
            raise ValidationError(f"Invoice {invoice.invoice_number} has an invalid {name}: {value}")


def _header(invoice: Invoice) -> str:
    logo = embeddable_logo(invoice.company_logo)
    logo_html = f'<img src="{_esc(logo)}" alt="Company Logo" class="company-logo" />' if logo else ""
    status = invoice.status.value
    return f"""
<div class="header">
  <div class="logo-section">
    {logo_html}
    <h1>INVOICE</h1>
    <p class="subtitle">Professional Invoice</p>
  </div>
  <div class="invoice-details">
    <h2>#{_esc(invoice.invoice_number)}</h2>
    <div class="invoice-meta">
      <p><strong>Date:</strong> {format_date(invoice.invoice_date, invoice.currency)}</p>
      <p><strong>Due Date:</strong> {format_date(invoice.due_date, invoice.currency)}</p>
      <p><strong>Status:</strong> <span class="status status-{status}">{status.upper()}</span></p>
    </div>
  </div>
</div>"""


def _address_block(title: str, name: str, email: str, phone: str, address: str) -> str:
    return f"""
  <div class="address-block">
    <h3>{title}</h3>
    <div class="address-content">
      <p><strong>{_esc(name)}</strong></p>
      <p>{_esc(email)}</p>
      <p>{_esc(phone)}</p>
      <p>{_multiline(address)}</p>
    </div>
  </div>"""


def _addresses(invoice: Invoice) -> str:
    sender = _address_block(
        "From", invoice.from_name, invoice.from_email, invoice.from_phone, invoice.from_address,
    )
    client = _address_block(
        "Bill To", invoice.to_name, invoice.to_email, invoice.to_phone, invoice.to_address,
    )
    return f'\n<div class="addresses">{sender}{client}\n</div>'


def _item_row(item: InvoiceItem, invoice: Invoice) -> str:
    return (
        "\n    <tr>"
        f"<td>{_esc(item.description)}</td>"
        f'<td class="text-right">{format_number(item.quantity)}</td>'
        f'<td class="text-right">{format_currency(item.rate, invoice.currency)}</td>'
        f'<td class="text-right">{format_currency(item.amount, invoice.currency)}</td>'
        "</tr>"
    )


def _items_table(invoice: Invoice) -> str:
    rows = "".join(_item_row(item, invoice) for item in invoice.items)
    return f"""
<table class="items-table">
  <thead>
    <tr>
      <th>Description</th>
      <th class="text-right">Qty</th>
      <th class="text-right">Rate</th>
      <th class="text-right">Amount</th>
    </tr>
  </thead>
  <tbody>{rows}
  </tbody>
</table>"""


def _totals(invoice: Invoice) -> str:
    currency = invoice.currency
    return f"""
<div class="totals">
  <div class="total-row subtotal"><span>Subtotal:</span><span>{format_currency(invoice.subtotal, currency)}</span></div>
  <div class="total-row tax"><span>Tax ({format_number(invoice.tax_rate)}%):</span><span>{format_currency(invoice.tax_amount, currency)}</span></div>
  <div class="total-row final"><span>Total:</span><span>{format_currency(invoice.total, currency)}</span></div>
</div>"""


# (css class, heading, invoice attribute); rendered only when non-empty
OPTIONAL_SECTIONS = (
    ("notes", "Notes", "notes"),
    ("terms", "Terms &amp; Conditions", "terms"),
    ("payment-instructions", "Payment Instructions", "payment_instructions"),
)


def _sections(invoice: Invoice) -> str:
    parts = []
    for css_class, heading, attr in OPTIONAL_SECTIONS:
        text = getattr(invoice, attr)
        if text and text.strip():
            parts.append(
                f'\n<div class="{css_class}">\n  <h4>{heading}</h4>\n  <p>{_multiline(text)}</p>\n</div>'
            )
    return "".join(parts)


def _footer(invoice: Invoice, generated_on: date) -> str:
    return f"""
<div class="footer">
  <p>Thank you for your business!</p>
  <p>Generated on {format_date(generated_on, invoice.currency)} • {_esc(config.BUSINESS_NAME)}</p>
</div>"""


def render_invoice_html(
    invoice: Invoice,
    template: Union[str, Template, None] = None,
    generated_on: Optional[date] = None,
) -> str:
    """Render ``invoice`` as a complete, self-contained HTML document.

    Args:
        invoice: A fully computed invoice; its totals are shown as stored.
        template: Template variant; defaults to the invoice's own template.
            Unknown names fall back to ``modern``.
        generated_on: Date printed in the footer. Defaults to the date of
            the invoice's last update so the output depends only on inputs.

    Returns:
        The HTML page as a string.

    Raises:
        ValidationError: If subtotal, tax or total is negative.
    """
    check_totals(invoice)
    variant = resolve_template(template if template is not None else invoice.template)
    style = TEMPLATE_STYLES[variant]
    stamp = generated_on or invoice.updated_at.date()

    body = "".join([
        _header(invoice),
        _addresses(invoice),
        _items_table(invoice),
        _totals(invoice),
        _sections(invoice),
        _footer(invoice, stamp),
    ])
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>Invoice {_esc(invoice.invoice_number)}</title>\n"
        f'<style>{BASE_CSS}\n/* template: {variant.value} */\n{style.css()}</style>\n'
        "</head>\n"
        f'<body class="template-{variant.value}">'
        f"{body}\n"
        "</body>\n"
        "</html>\n"
    )
