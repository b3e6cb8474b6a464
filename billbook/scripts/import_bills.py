"""Load bills from a JSON backup into the local database.

The file holds a JSON array of bill records in the browser database layout
(``invoiceNumber``, ``customerName``, ``items``, ...). Records with legacy
``INV-`` numbers are kept as they are. Invalid records are reported and
skipped; a record whose invoice number already exists replaces it.

Usage:
    python -m billbook.scripts.import_bills backup.json
    python -m billbook.scripts.import_bills backup.json --dry-run
    python -m billbook.scripts.import_bills backup.json --verbose
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from billbook.db import Database, get_url, initialize_db
from billbook.exceptions import StorageError, ValidationError
from billbook.logging import configure_logging, reconfigure
from billbook.models import format_inr
from billbook.models.bill import Bill
from billbook.repositories.factory import get_bill_repository
from billbook.services.bill_service import BillService, finalize_bill
from billbook.services.serializers import deserialize_bill

logger = logging.getLogger(__name__)

console = Console()


def load_records(path: Path) -> list[Mapping[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValidationError(f"{path} must contain a JSON array of bill records")
    return data


def import_records(
    bill_service: BillService,
    records: Iterable[Mapping[str, Any]],
    dry_run: bool = False,
) -> tuple[list[Bill], list[tuple[int, str]]]:
    """Save each valid record. Returns (imported bills, [(record index, reason)])."""
    imported: list[Bill] = []
    skipped: list[tuple[int, str]] = []
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            skipped.append((index, "not an object"))
            continue
        try:
            bill = deserialize_bill(record)
            bill = finalize_bill(bill) if dry_run else bill_service.save_bill(bill)
        except ValidationError as exc:
            logger.warning("Skipping record %d: %s", index, exc)
            skipped.append((index, str(exc)))
            continue
        imported.append(bill)
    return imported, skipped


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    dry_run = "--dry-run" in args
    level = "DEBUG" if "--verbose" in args else None
    paths = [arg for arg in args if not arg.startswith("--")]
    if len(paths) != 1:
        console.print("Usage: python -m billbook.scripts.import_bills <backup.json> [--dry-run] [--verbose]")
        return 2

    configure_logging(level)
    try:
        records = load_records(Path(paths[0]))
    except (OSError, ValueError) as exc:
        console.print(f"[red]Could not read {paths[0]}: {exc}[/red]")
        return 1

    try:
        with Database(get_url()) as database:
            initialize_db(database)
            reconfigure(level)
            bill_service = BillService(get_bill_repository(database))
            imported, skipped = import_records(bill_service, records, dry_run=dry_run)
    except StorageError as exc:
        console.print(f"[red]Import aborted: {exc}[/red]")
        return 1

    table = Table(title="Dry run" if dry_run else "Imported bills")
    table.add_column("Invoice")
    table.add_column("Date")
    table.add_column("Customer")
    table.add_column("Total", justify="right")
    for bill in imported:
        table.add_row(bill.invoice_number, bill.date, bill.customer_name, format_inr(bill.total_amount))
    console.print(table)

    for index, reason in skipped:
        console.print(f"[yellow]Skipped record {index}: {reason}[/yellow]")
    console.print(f"\n[green]{len(imported)} imported[/green], {len(skipped)} skipped.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
