"""Invoice number generation.

``next_invoice_number`` produces ``INV-YYYYMM-NNN`` with a random suffix in
[0, 999]. It gives no uniqueness guarantee: with a few dozen invoices in one
month a collision is likely. Anything that persists invoices should number
them through ``InvoiceNumberSequence`` instead, which keeps the same display
format on top of a monotonic per-month counter.
"""

from __future__ import annotations

import random
import re
from datetime import datetime
from typing import Iterable, Optional

NUMBER_PATTERN = re.compile(r"^INV-(\d{4})(\d{2})-(\d{3,})$")


def _period(now: datetime) -> str:
    return f"{now.year}{now.month:02d}"


def next_invoice_number(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    """Return ``INV-{year}{month:02}-{random:03}`` for ``now``."""
    now = now or datetime.now()
    suffix = (rng or random).randint(0, 999)
    return f"INV-{_period(now)}-{suffix:03d}"


class InvoiceNumberSequence:
    """Monotonic invoice numbers, restarting at 001 each calendar month.

    Seed it with the numbers already issued so a restart never reissues one.
    Past 999 in a month the suffix simply grows a digit.
    """

    def __init__(self, issued: Iterable[str] = ()):
        self._last: dict[str, int] = {}
        for number in issued:
            self.observe(number)

    def observe(self, number: str) -> None:
        """Record an already-issued number. Numbers in other formats are ignored."""
        match = NUMBER_PATTERN.match(number or "")
        if not match:
            return
        period = match.group(1) + match.group(2)
        self._last[period] = max(self._last.get(period, 0), int(match.group(3)))

    def next(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.now()
        period = _period(now)
        seq = self._last.get(period, 0) + 1
        self._last[period] = seq
        return f"INV-{period}-{seq:03d}"
