import questionary
from rich.console import Console

from billbook.cli.bill_menu import (
    create_bill_menu,
    filter_bills_menu,
    find_bill_menu,
    find_bills_menu,
    recent_bills_menu,
    search_bills_menu,
)
from billbook.db import Database
from billbook.exceptions import StorageError
from billbook.repositories.factory import get_bill_repository
from billbook.services.bill_service import BillService
from billbook.services.invoice_number import InvoiceNumberService
from billbook.settings import settings

console = Console()


def _build_services(database: Database) -> tuple[BillService, InvoiceNumberService]:
    bill_repo = get_bill_repository(database)
    return BillService(bill_repo), InvoiceNumberService(bill_repo)


def main_menu(database: Database) -> None:
    bill_service, invoice_numbers = _build_services(database)

    console.print()
    console.print(f"[bold]{settings.business_name}[/bold]", style="cyan")
    console.print()

    actions = {
        "Create Bill": lambda: create_bill_menu(bill_service, invoice_numbers),
        "Recent Bills": lambda: recent_bills_menu(bill_service),
        "Search Bills": lambda: search_bills_menu(bill_service),
        "Filter by Date": lambda: filter_bills_menu(bill_service),
        "Search & Filter": lambda: find_bills_menu(bill_service),
        "Find by Invoice Number": lambda: find_bill_menu(bill_service),
    }

    while True:
        choice = questionary.select("Main Menu", choices=list(actions.keys()) + ["Exit"]).ask()

        if choice is None or choice == "Exit":
            console.print("[bold]Goodbye![/bold]")
            break
        try:
            actions[choice]()
        except StorageError as exc:
            console.print(f"[red]Storage error: {exc}[/red]")
