"""PDF export of an invoice with ReportLab.

Same content and order as the HTML document (header, parties, items,
totals, optional sections, footer), styled by the same TemplateStyle.
"""

from __future__ import annotations

import base64
import binascii
import html
import io
import logging
from datetime import date
from typing import BinaryIO, Optional, Union

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from folio.config import config
from folio.errors import ValidationError
from folio.models.invoices import Invoice, Template
from folio.tools.currency import format_currency, format_date
from folio.tools.renderer import (
    OPTIONAL_SECTIONS,
    check_totals,
    embeddable_logo,
    format_number,
    template_style,
)

logger = logging.getLogger(__name__)

# The base-14 PDF fonts have no rupee glyph.
_PDF_SYMBOL_SUBSTITUTES = {"₹": "Rs. "}


def _money(amount, invoice: Invoice) -> str:
    text = format_currency(amount, invoice.currency)
    for symbol, substitute in _PDF_SYMBOL_SUBSTITUTES.items():
        text = text.replace(symbol, substitute)
    return text


def _text(value: str) -> str:
    return "<br/>".join(html.escape(line, quote=False) for line in value.splitlines())


def _logo_image(data_uri: str) -> Image:
    try:
        encoded = data_uri.split(",", 1)[1]
        raw = base64.b64decode(encoded, validate=True)
    except (IndexError, binascii.Error) as e:
        raise ValidationError("company logo is not a valid base64 data URI") from e
    return Image(io.BytesIO(raw), width=1.2 * inch, height=0.6 * inch, kind="proportional")


def render_invoice_pdf(
    invoice: Invoice,
    output: Union[str, BinaryIO],
    template: Union[str, Template, None] = None,
    generated_on: Optional[date] = None,
) -> None:
    """Build a PDF for ``invoice``.

    Args:
        invoice: A fully computed invoice.
        output: File path (str) or binary file-like object (BytesIO).
        template: Template variant; defaults to the invoice's own template.
        generated_on: Footer date; defaults to the invoice's last update.
    """
    check_totals(invoice)
    style = template_style(template if template is not None else invoice.template)
    accent = colors.HexColor(style.accent)
    stamp = generated_on or invoice.updated_at.date()

    doc = SimpleDocTemplate(
        output,
        pagesize=A4,
        rightMargin=0.75 * inch,
        leftMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        title=f"Invoice {invoice.invoice_number}",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "InvoiceTitle",
        parent=styles["Heading1"],
        fontName=style.pdf_heading_font,
        fontSize=style.title_size * 0.75,
        spaceAfter=6,
        textColor=colors.HexColor(style.title_color),
    )
    header_style = ParagraphStyle(
        "InvoiceHeader",
        parent=styles["Normal"],
        fontName=style.pdf_body_font,
        fontSize=10,
        textColor=colors.HexColor("#555555"),
        spaceAfter=2,
    )
    label_style = ParagraphStyle(
        "Label",
        parent=styles["Normal"],
        fontName=style.pdf_heading_font,
        fontSize=9,
        textColor=colors.HexColor("#888888"),
    )
    value_style = ParagraphStyle(
        "Value",
        parent=styles["Normal"],
        fontName=style.pdf_body_font,
        fontSize=10,
        textColor=colors.HexColor("#1F2937"),
    )
    section_heading_style = ParagraphStyle(
        "SectionHeading",
        parent=styles["Normal"],
        fontName=style.pdf_heading_font,
        fontSize=11,
        textColor=colors.HexColor("#1F2937"),
        spaceAfter=4,
    )
    notes_style = ParagraphStyle(
        "Notes",
        parent=styles["Normal"],
        fontName=style.pdf_body_font,
        fontSize=9,
        textColor=colors.HexColor("#6B7280"),
    )
    footer_style = ParagraphStyle(
        "Footer",
        parent=styles["Normal"],
        fontName=style.pdf_body_font,
        fontSize=8,
        textColor=colors.HexColor("#9CA3AF"),
        alignment=1,  # Center
    )

    elements = []

    # ── Header: logo, title, number, dates, status ──
    logo = embeddable_logo(invoice.company_logo)
    if logo:
        elements.append(_logo_image(logo))
    elements.append(Paragraph("INVOICE", title_style))
    elements.append(Paragraph(f"#{html.escape(invoice.invoice_number)}", header_style))
    elements.append(Spacer(1, 20))

    # ── From / To / Details ──
    from_to_data = [
        [
            Paragraph("FROM", label_style),
            Paragraph("BILL TO", label_style),
            Paragraph("DETAILS", label_style),
        ],
        [
            Paragraph(f"<b>{_text(invoice.from_name)}</b>", value_style),
            Paragraph(f"<b>{_text(invoice.to_name)}</b>", value_style),
            Paragraph(f"Date: {format_date(invoice.invoice_date, invoice.currency)}", value_style),
        ],
        [
            Paragraph(_text(invoice.from_email), header_style),
            Paragraph(_text(invoice.to_email), header_style),
            Paragraph(f"Due: {format_date(invoice.due_date, invoice.currency)}", value_style),
        ],
        [
            Paragraph(_text(invoice.from_phone), header_style),
            Paragraph(_text(invoice.to_phone), header_style),
            Paragraph(f"Status: {invoice.status.value.upper()}", value_style),
        ],
        [
            Paragraph(_text(invoice.from_address), header_style),
            Paragraph(_text(invoice.to_address), header_style),
            Paragraph("", header_style),
        ],
    ]
    from_to_table = Table(from_to_data, colWidths=[2.3 * inch, 2.3 * inch, 2.3 * inch])
    from_to_table.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 2),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
        ("LINEBELOW", (0, 0), (-1, 0), 1, colors.HexColor("#E5E7EB")),
    ]))
    elements.append(from_to_table)
    elements.append(Spacer(1, 30))

    # ── Line items and totals ──
    table_data = [["Description", "Qty", "Rate", "Amount"]]
    for item in invoice.items:
        table_data.append([
            Paragraph(_text(item.description), value_style),
            format_number(item.quantity),
            _money(item.rate, invoice),
            _money(item.amount, invoice),
        ])
    table_data.append(["", "", "Subtotal", _money(invoice.subtotal, invoice)])
    table_data.append(["", "", f"Tax ({format_number(invoice.tax_rate)}%)", _money(invoice.tax_amount, invoice)])
    table_data.append(["", "", "TOTAL", _money(invoice.total, invoice)])

    header_background = colors.HexColor(style.table_header_background)
    header_text = colors.white if style.th_color == "white" else colors.HexColor(style.th_color)
    items_table = Table(table_data, colWidths=[3.3 * inch, 0.8 * inch, 1.4 * inch, 1.4 * inch])
    items_table.setStyle(TableStyle([
        # Header row
        ("BACKGROUND", (0, 0), (-1, 0), header_background),
        ("TEXTCOLOR", (0, 0), (-1, 0), header_text),
        ("FONTNAME", (0, 0), (-1, 0), style.pdf_heading_font),
        ("FONTSIZE", (0, 0), (-1, 0), 10),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("TOPPADDING", (0, 0), (-1, 0), 8),
        # Item rows
        ("FONTNAME", (0, 1), (-1, -4), style.pdf_body_font),
        ("FONTSIZE", (0, 1), (-1, -4), 9),
        ("TOPPADDING", (0, 1), (-1, -4), 6),
        ("BOTTOMPADDING", (0, 1), (-1, -4), 6),
        ("ROWBACKGROUNDS", (0, 1), (-1, -4), [colors.white, colors.HexColor("#F9FAFB")]),
        # Subtotal and tax rows
        ("FONTNAME", (2, -3), (-1, -2), style.pdf_body_font),
        ("TEXTCOLOR", (2, -3), (-1, -2), colors.HexColor("#6B7280")),
        ("LINEABOVE", (2, -3), (-1, -3), 0.5, colors.HexColor("#E5E7EB")),
        # Total row
        ("FONTNAME", (0, -1), (-1, -1), style.pdf_heading_font),
        ("FONTSIZE", (0, -1), (-1, -1), 11),
        ("TOPPADDING", (0, -1), (-1, -1), 10),
        ("LINEABOVE", (2, -1), (-1, -1), 1.5, accent),
        # Alignment
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    if style.th_border:
        items_table.setStyle(TableStyle([("LINEBELOW", (0, 0), (-1, 0), 1.5, colors.HexColor("#E5E7EB"))]))
    elements.append(items_table)

    # ── Notes, terms, payment instructions ──
    for _css_class, heading, attr in OPTIONAL_SECTIONS:
        text = getattr(invoice, attr)
        if text and text.strip():
            elements.append(Spacer(1, 18))
            elements.append(Paragraph(heading, section_heading_style))
            elements.append(Paragraph(_text(text), notes_style))

    # ── Footer ──
    elements.append(Spacer(1, 40))
    elements.append(Paragraph("Thank you for your business!", footer_style))
    elements.append(Paragraph(
        f"Generated on {format_date(stamp, invoice.currency)} • {html.escape(config.BUSINESS_NAME)}",
        footer_style,
    ))

    doc.build(elements)
    logger.info(f"Invoice PDF generated: {output if isinstance(output, str) else 'in-memory buffer'}")
