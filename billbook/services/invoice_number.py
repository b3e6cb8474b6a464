"""Suggest the next invoice number from the most recently created bill.

Numbers are suggested, not reserved: two forms opened at the same time are
offered the same number, and whichever is saved second overwrites the first.
"""

from __future__ import annotations

import logging
import re

from billbook.constants import FIRST_INVOICE_NUMBER, INVOICE_NUMBER_WIDTH, LEGACY_INVOICE_PREFIX
from billbook.repositories.base import BillRepository

logger = logging.getLogger(__name__)

_CURRENT_FORMAT_RE = re.compile(rf"^(\d{{{INVOICE_NUMBER_WIDTH}}})$")
_LEGACY_FORMAT_RE = re.compile(rf"{re.escape(LEGACY_INVOICE_PREFIX)}(\d+)")
_ANY_DIGITS_RE = re.compile(r"(\d+)")


def extract_invoice_number(invoice_number: str | None) -> int:
    """Numeric part of an invoice number: '00007' -> 7, 'INV-0042' -> 42, 'ABC' -> 0."""
    if not invoice_number:
        return 0
    for pattern in (_CURRENT_FORMAT_RE, _LEGACY_FORMAT_RE, _ANY_DIGITS_RE):
        match = pattern.search(invoice_number)
        if match:
            return int(match.group(1))
    return 0


def format_invoice_number(number: int) -> str:
    """Zero-pad to five digits. Larger numbers widen instead of truncating."""
    return str(number).zfill(INVOICE_NUMBER_WIDTH)


class InvoiceNumberService:
    def __init__(self, bill_repo: BillRepository) -> None:
        self.bill_repo = bill_repo

    def get_next_invoice_number(self) -> str:
        try:
            latest = self.bill_repo.get_latest()
        except Exception:
            logger.exception("Could not read latest bill, suggesting %s", FIRST_INVOICE_NUMBER)
            return FIRST_INVOICE_NUMBER

        if latest is None or not latest.invoice_number:
            logger.debug("No bills yet, suggesting %s", FIRST_INVOICE_NUMBER)
            return FIRST_INVOICE_NUMBER

        suggestion = format_invoice_number(extract_invoice_number(latest.invoice_number) + 1)
        logger.debug("Latest invoice %s, suggesting %s", latest.invoice_number, suggestion)
        return suggestion
