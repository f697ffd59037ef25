"""Exception taxonomy for Folio.

Every error derives from FolioError so callers can catch the whole family,
and from the matching builtin (ValueError / LookupError) so generic handlers
keep working.
"""

from __future__ import annotations


class FolioError(Exception):
    """Base class for all Folio errors."""


class ValidationError(FolioError, ValueError):
    """Raised when an input is outside its allowed domain.

    Negative quantities or rates, tax rates outside [0, 100], NaN or infinite
    numbers, malformed dates and due dates before the invoice date.
    """


class UnknownCurrencyError(ValidationError):
    """Raised in strict mode for a currency code outside the locale table."""


class UnknownTemplateError(ValidationError):
    """Raised in strict mode for a template name outside the known variants."""


class InvalidTransitionError(FolioError, ValueError):
    """Raised when a disallowed status transition is attempted."""


class ItemNotFoundError(FolioError, LookupError):
    """Raised when a line item id does not exist on the invoice."""


class InvoiceNotFoundError(FolioError, LookupError):
    """Raised when an invoice id does not exist in the store."""
