from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from billbook.dates import to_date_key, today
from billbook.exceptions import ValidationError
from billbook.models.bill import Bill
from billbook.repositories.base import BillRepository

logger = logging.getLogger(__name__)


def finalize_bill(bill: Bill) -> Bill:
    """Re-validate a bill from its inputs only.

    Item amounts and the total are computed properties, so rebuilding the
    model from its dumped fields recomputes them and renumbers the items.
    """
    try:
        return Bill.model_validate(bill.model_dump(exclude={"total_amount"}))
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


class BillService:
    def __init__(self, bill_repo: BillRepository) -> None:
        self.bill_repo = bill_repo

    def create_bill(
        self,
        invoice_number: str,
        customer_name: str,
        items: Sequence[Mapping[str, Any]],
        customer_phone: str | None = None,
        date: str = "",
    ) -> Bill:
        try:
            bill = Bill(
                invoice_number=invoice_number,
                date=date or today(),
                customer_name=customer_name,
                customer_phone=customer_phone,
                items=[dict(item) for item in items],
            )
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc
        return self.save_bill(bill)

    def save_bill(self, bill: Bill) -> Bill:
        finalized = finalize_bill(bill)
        saved = self.bill_repo.save(finalized)
        logger.info(
            "Bill saved: invoice=%s, customer=%s, items=%d, total=%s",
            saved.invoice_number,
            saved.customer_name,
            len(saved.items),
            saved.total_amount,
        )
        return saved

    def get_bill(self, invoice_number: str) -> Bill | None:
        result = self.bill_repo.get_by_invoice_number(invoice_number)
        logger.debug("get_bill invoice=%s found=%s", invoice_number, result is not None)
        return result

    def list_bills(self) -> list[Bill]:
        result = self.bill_repo.get_all_sorted()
        logger.debug("Listed %d bills", len(result))
        return result

    def search_bills(self, term: str) -> list[Bill]:
        result = self.bill_repo.search_by_customer_name(term)
        logger.debug("search_bills term=%r matched=%d", term, len(result))
        return result

    def filter_bills(self, from_date: str, to_date: str) -> list[Bill]:
        result = self.bill_repo.filter_by_date_range(from_date, to_date)
        logger.debug("filter_bills from=%s to=%s matched=%d", from_date, to_date, len(result))
        return result

    def find_bills(self, term: str = "", from_date: str = "", to_date: str = "") -> list[Bill]:
        """Bills matching a customer name term within an optional date range.

        Each criterion is optional: a blank term or bound does not narrow the
        results, so a lone ``from_date`` means "on or after". Malformed dates
        raise ValidationError before the store is read.
        """
        from_key = to_date_key(from_date) if from_date.strip() else None
        to_key = to_date_key(to_date) if to_date.strip() else None
        bills = self.bill_repo.search_by_customer_name(term) if term.strip() else self.bill_repo.get_all_sorted()
        result = [
            bill
            for bill in bills
            if (from_key is None or bill.date_key >= from_key) and (to_key is None or bill.date_key <= to_key)
        ]
        logger.debug(
            "find_bills term=%r from=%s to=%s matched=%d", term, from_date or "-", to_date or "-", len(result)
        )
        return result
