from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Connection, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError

from billbook.dates import to_date_key
from billbook.exceptions import StorageError
from billbook.models.bill import Bill, LineItem
from billbook.repositories.base import BillRepository

logger = logging.getLogger(__name__)

# Keeps IN (...) lists under SQLite's bound-parameter limit.
_ITEM_BATCH_SIZE = 500

_ORDER_NEWEST_FIRST = "ORDER BY created_at DESC, invoice_number ASC"


def _timestamp_key(value: datetime) -> str:
    """Fixed-width UTC ISO string; sorts lexicographically in time order."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(f"Failed to {action}: {exc}") from exc
    except PydanticValidationError as exc:
        raise StorageError(f"Corrupt bill record while trying to {action}: {exc}") from exc


class SQLAlchemyBillRepository(BillRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def save(self, bill: Bill) -> Bill:
        key = {"invoice_number": bill.invoice_number}
        try:
            self.conn.execute(text("DELETE FROM bill_items WHERE invoice_number = :invoice_number"), key)
            self.conn.execute(text("DELETE FROM bills WHERE invoice_number = :invoice_number"), key)
            self.conn.execute(
                text(
                    "INSERT INTO bills (invoice_number, date, date_key, customer_name, customer_phone, "
                    "total_amount, created_at, synced_to_google_drive, google_drive_file_id) "
                    "VALUES (:invoice_number, :date, :date_key, :customer_name, :customer_phone, "
                    ":total_amount, :created_at, :synced_to_google_drive, :google_drive_file_id)"
                ),
                {
                    "invoice_number": bill.invoice_number,
                    "date": bill.date,
                    "date_key": bill.date_key,
                    "customer_name": bill.customer_name,
                    "customer_phone": bill.customer_phone,
                    "total_amount": str(bill.total_amount),
                    "created_at": _timestamp_key(bill.created_at),
                    "synced_to_google_drive": bill.synced_to_google_drive,
                    "google_drive_file_id": bill.google_drive_file_id,
                },
            )
            self.conn.execute(
                text(
                    "INSERT INTO bill_items (invoice_number, sno, description, qty, rate, amount) "
                    "VALUES (:invoice_number, :sno, :description, :qty, :rate, :amount)"
                ),
                [
                    {
                        "invoice_number": bill.invoice_number,
                        "sno": item.sno,
                        "description": item.description,
                        "qty": str(item.qty),
                        "rate": str(item.rate),
                        "amount": str(item.amount),
                    }
                    for item in bill.items
                ],
            )
            self.conn.commit()
        except SQLAlchemyError as exc:
            self._rollback()
            raise StorageError(f"Failed to save bill {bill.invoice_number}: {exc}") from exc

        result = self.get_by_invoice_number(bill.invoice_number)
        if result is None:
            raise StorageError(f"Failed to retrieve bill after save (invoice_number={bill.invoice_number})")
        return result

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")

    @staticmethod
    def _build_bill(row: RowMapping, item_rows: list[RowMapping]) -> Bill:
        return Bill(
            invoice_number=row["invoice_number"],
            date=row["date"],
            customer_name=row["customer_name"],
            customer_phone=row["customer_phone"],
            items=[
                LineItem(
                    sno=item_row["sno"],
                    description=item_row["description"],
                    qty=Decimal(item_row["qty"]),
                    rate=Decimal(item_row["rate"]),
                )
                for item_row in item_rows
            ],
            created_at=datetime.fromisoformat(row["created_at"]),
            synced_to_google_drive=bool(row["synced_to_google_drive"]),
            google_drive_file_id=row["google_drive_file_id"],
        )

    def _load_items(self, invoice_numbers: Sequence[str]) -> dict[str, list[RowMapping]]:
        items_by_bill: dict[str, list[RowMapping]] = {}
        for start in range(0, len(invoice_numbers), _ITEM_BATCH_SIZE):
            batch = invoice_numbers[start : start + _ITEM_BATCH_SIZE]
            placeholders = ", ".join(f":k{i}" for i in range(len(batch)))
            params = {f"k{i}": key for i, key in enumerate(batch)}
            rows = (
                self.conn.execute(
                    text(f"SELECT * FROM bill_items WHERE invoice_number IN ({placeholders}) ORDER BY sno"),
                    params,
                )
                .mappings()
                .fetchall()
            )
            for item_row in rows:
                items_by_bill.setdefault(item_row["invoice_number"], []).append(item_row)
        return items_by_bill

    def _build_bills_from_rows(self, rows: Sequence[RowMapping]) -> list[Bill]:
        if not rows:
            return []
        items_by_bill = self._load_items([row["invoice_number"] for row in rows])
        return [self._build_bill(row, items_by_bill.get(row["invoice_number"], [])) for row in rows]

    def _select(self, sql: str, params: dict | None = None) -> list[Bill]:
        rows = self.conn.execute(text(sql), params or {}).mappings().fetchall()
        return self._build_bills_from_rows(rows)

    def get_by_invoice_number(self, invoice_number: str) -> Bill | None:
        with _storage_errors(f"get bill {invoice_number}"):
            bills = self._select(
                "SELECT * FROM bills WHERE invoice_number = :invoice_number",
                {"invoice_number": invoice_number},
            )
        return bills[0] if bills else None

    def get_all(self) -> list[Bill]:
        with _storage_errors("list bills"):
            return self._select("SELECT * FROM bills")

    def get_all_sorted(self) -> list[Bill]:
        with _storage_errors("list bills"):
            return self._select(f"SELECT * FROM bills {_ORDER_NEWEST_FIRST}")

    def get_latest(self) -> Bill | None:
        with _storage_errors("get latest bill"):
            bills = self._select(f"SELECT * FROM bills {_ORDER_NEWEST_FIRST} LIMIT 1")
        return bills[0] if bills else None

    def search_by_customer_name(self, term: str) -> list[Bill]:
        # Filtered here rather than with LIKE: SQLite only folds ASCII case.
        needle = term.strip().casefold()
        return [bill for bill in self.get_all_sorted() if needle in bill.customer_name.casefold()]

    def filter_by_date_range(self, from_date: str, to_date: str) -> list[Bill]:
        params = {"from_key": to_date_key(from_date), "to_key": to_date_key(to_date)}
        with _storage_errors("filter bills by date"):
            return self._select(
                f"SELECT * FROM bills WHERE date_key >= :from_key AND date_key <= :to_key {_ORDER_NEWEST_FIRST}",
                params,
            )
