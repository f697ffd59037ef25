"""Display sinks: the side-effecting step after a document is rendered.

Rendering (``folio.tools.renderer``) builds the page; a sink shows, saves or
prints it. Keeping the two apart lets the renderer run without a display.
"""

from __future__ import annotations

import logging
import os
import re
import webbrowser
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from folio.config import config
from folio.models.invoices import Invoice, Template
from folio.tools.renderer import render_invoice_html

logger = logging.getLogger(__name__)


def document_filename(invoice: Invoice, extension: str = "html") -> str:
    """Filesystem-safe name for an invoice document, e.g. ``INV-202601-007.html``."""
    stem = re.sub(r"[^A-Za-z0-9._-]+", "_", invoice.invoice_number or invoice.id).strip("_")
    return f"{stem or invoice.id}.{extension}"


class DocumentSink(ABC):
    """Somewhere a finished document can be sent."""

    @abstractmethod
    def display(self, document: str, filename: str) -> str:
        """Show or store ``document`` and return where it went."""
        ...


class FileSink(DocumentSink):
    """Writes documents into a directory."""

    def __init__(self, output_dir: Union[str, Path, None] = None):
        self.output_dir = Path(output_dir or config.INVOICE_OUTPUT_DIR)

    def display(self, document: str, filename: str) -> str:
        os.makedirs(self.output_dir, exist_ok=True)
        path = self.output_dir / filename
        path.write_text(document, encoding="utf-8")
        logger.info(f"Invoice document saved to {path}")
        return str(path)


class BrowserSink(FileSink):
    """Saves the document and opens it in the platform browser for printing."""

    def display(self, document: str, filename: str) -> str:
        path = super().display(document, filename)
        if not webbrowser.open(Path(path).resolve().as_uri()):
            logger.warning(f"No browser available to open {path}")
        return path


def print_invoice(
    invoice: Invoice,
    sink: DocumentSink,
    template: Union[str, Template, None] = None,
    filename: Optional[str] = None,
) -> str:
    """Render ``invoice`` and hand the finished page to ``sink``."""
    document = render_invoice_html(invoice, template)
    return sink.display(document, filename or document_filename(invoice))
