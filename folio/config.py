"""Folio configuration — loads environment variables and invoice defaults."""

import os

from dotenv import load_dotenv

load_dotenv()

# Project root: two levels up from this file (folio/config.py → project root)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _resolve(path: str) -> str:
    """Resolve a path relative to the project root if not already absolute."""
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


class Config:
    # Branding
    BUSINESS_NAME: str = os.getenv("FOLIO_BUSINESS_NAME", "Invoice Builder Pro")

    # Invoice defaults
    DEFAULT_CURRENCY: str = os.getenv("FOLIO_DEFAULT_CURRENCY", "INR")
    DEFAULT_TEMPLATE: str = os.getenv("FOLIO_DEFAULT_TEMPLATE", "modern")
    DEFAULT_TAX_RATE: str = os.getenv("FOLIO_DEFAULT_TAX_RATE", "18")
    DUE_DAYS: int = int(os.getenv("FOLIO_DUE_DAYS", "30"))

    # Analytics
    RECENT_LIMIT: int = int(os.getenv("FOLIO_RECENT_LIMIT", "5"))

    # Output
    INVOICE_OUTPUT_DIR: str = _resolve(os.getenv("INVOICE_OUTPUT_DIR", "invoices"))

    # Database
    DB_PATH: str = _resolve(os.getenv("DB_PATH", "folio.db"))


config = Config()
