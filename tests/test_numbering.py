from __future__ import annotations

import random
import re
from datetime import datetime

from folio.tools.numbering import InvoiceNumberSequence, next_invoice_number

PATTERN = re.compile(r"^INV-\d{6}-\d{3}$")


class FixedRandom:
    def __init__(self, value: int):
        self.value = value

    def randint(self, low: int, high: int) -> int:
        assert (low, high) == (0, 999)
        return self.value


def test_random_numbers_match_format(now):
    for _ in range(200):
        number = next_invoice_number(now)
        assert PATTERN.match(number)
        assert number.startswith("INV-202603-")


def test_suffix_is_zero_padded_at_both_ends():
    when = datetime(2025, 11, 2)
    assert next_invoice_number(when, FixedRandom(0)) == "INV-202511-000"
    assert next_invoice_number(when, FixedRandom(7)) == "INV-202511-007"
    assert next_invoice_number(when, FixedRandom(999)) == "INV-202511-999"


def test_seeded_rng_is_reproducible(now):
    assert next_invoice_number(now, random.Random(42)) == next_invoice_number(now, random.Random(42))


def test_sequence_continues_from_issued_numbers(now):
    sequence = InvoiceNumberSequence(["INV-202603-004", "INV-202603-002", "INV-202602-010", "draft-1"])
    assert sequence.next(now) == "INV-202603-005"
    assert sequence.next(now) == "INV-202603-006"


def test_sequence_restarts_each_month():
    sequence = InvoiceNumberSequence(["INV-202603-004"])
    assert sequence.next(datetime(2026, 4, 1)) == "INV-202604-001"


def test_sequence_never_repeats(now):
    sequence = InvoiceNumberSequence()
    numbers = [sequence.next(now) for _ in range(500)]
    assert len(set(numbers)) == 500
    assert all(PATTERN.match(n) for n in numbers)
