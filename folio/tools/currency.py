"""Currency formatting driven by a fixed locale table.

Each supported currency maps to one display locale:

    INR → en-IN  ₹1,23,456.50   (lakh grouping)
    USD → en-US  $123,456.50
    EUR → de-DE  123.456,50 €
    GBP → en-GB  £123,456.50

Unknown codes fall back to the INR entry with a logged warning, unless the
caller asks for strict resolution.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Union

from folio.errors import UnknownCurrencyError
from folio.models.invoices import MONEY_CONTEXT, Currency
from folio.tools.calculations import Number, to_decimal

logger = logging.getLogger(__name__)

NBSP = "\u00a0"
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class CurrencyLocale:
    currency: Currency
    locale: str
    symbol: str
    group_separator: str = ","
    decimal_separator: str = "."
    symbol_after: bool = False
    indian_grouping: bool = False
    date_pattern: str = "%d/%m/%Y"


CURRENCY_TABLE: dict[Currency, CurrencyLocale] = {
    Currency.INR: CurrencyLocale(Currency.INR, "en-IN", "₹", indian_grouping=True),
    Currency.USD: CurrencyLocale(Currency.USD, "en-US", "$", date_pattern="%m/%d/%Y"),
    Currency.EUR: CurrencyLocale(
        Currency.EUR, "de-DE", "€",
        group_separator=".", decimal_separator=",", symbol_after=True,
        date_pattern="%d.%m.%Y",
    ),
    Currency.GBP: CurrencyLocale(Currency.GBP, "en-GB", "£"),
}

FALLBACK_CURRENCY = Currency.INR


def resolve_currency(code: Union[str, Currency, None], strict: bool = False) -> CurrencyLocale:
    """Look up the locale entry for ``code``.

    In strict mode an unknown code raises UnknownCurrencyError; otherwise
    the INR entry is returned and the fallback is logged.
    """
    try:
        return CURRENCY_TABLE[Currency(code.strip().upper() if isinstance(code, str) else code)]
    except ValueError:
        if strict:
            raise UnknownCurrencyError(f"Unknown currency: {code!r}") from None
        logger.warning(f"Unknown currency {code!r}, falling back to {FALLBACK_CURRENCY.value}")
        return CURRENCY_TABLE[FALLBACK_CURRENCY]


def _group(digits: str, entry: CurrencyLocale) -> str:
    if entry.indian_grouping and len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        return entry.group_separator.join(pairs + [tail])

    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return entry.group_separator.join(groups)


def format_currency(amount: Number, currency: Union[str, Currency, None] = Currency.INR) -> str:
    """Render ``amount`` with the locale's grouping, symbol and 2 decimals."""
    entry = resolve_currency(currency)
    with localcontext(MONEY_CONTEXT):
        value = to_decimal(amount, "amount").quantize(CENTS, rounding=ROUND_HALF_UP)

    integer, fraction = f"{abs(value):f}".split(".")
    number = f"{_group(integer, entry)}{entry.decimal_separator}{fraction}"
    text = f"{number}{NBSP}{entry.symbol}" if entry.symbol_after else f"{entry.symbol}{number}"
    return f"-{text}" if value < 0 else text


def currency_symbol(currency: Union[str, Currency, None]) -> str:
    """Bare symbol for ``currency``, e.g. ``€``."""
    return resolve_currency(currency).symbol


def format_date(value: date, currency: Union[str, Currency, None] = Currency.INR) -> str:
    """Render a calendar date in the short form of the currency's locale."""
    return value.strftime(resolve_currency(currency).date_pattern)
