from __future__ import annotations

from decimal import Decimal

import questionary
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from billbook.dates import now_timestamp, today
from billbook.exceptions import StorageError, ValidationError
from billbook.models import format_inr, parse_decimal
from billbook.models.bill import Bill, LineItem
from billbook.services.bill_service import BillService
from billbook.services.invoice_number import InvoiceNumberService

console = Console()

BACK = "Back"


def _ask_decimal(prompt: str) -> Decimal:
    while True:
        val = questionary.text(prompt).ask()
        parsed = parse_decimal(val or "")
        if parsed is not None and parsed >= 0:
            return parsed
        console.print("[red]Invalid number. Try again.[/red]")


def _ask_item(position: int) -> tuple[str, Decimal, Decimal] | None:
    while True:
        description = questionary.text(f"  Item {position} description:").ask()
        if description is None:
            return None
        if description.strip():
            break
        console.print("[red]Item description is required.[/red]")
    qty = _ask_decimal("    Qty (ex: 2):")
    rate = _ask_decimal("    Rate (ex: 150.50):")
    return description, qty, rate


def _items_table(items: list[LineItem]) -> Table:
    table = Table()
    table.add_column("S.No", style="dim", justify="right")
    table.add_column("Description")
    table.add_column("Qty", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Amount", justify="right")
    for item in items:
        table.add_row(
            str(item.sno),
            item.description,
            str(item.qty),
            format_inr(item.rate),
            format_inr(item.amount),
        )
    return table


def _show_bill_detail(bill: Bill) -> None:
    console.print()
    console.print(f"[bold cyan]Invoice {bill.invoice_number}[/bold cyan]  Date: {bill.date}")
    console.print(f"  Customer: {bill.customer_name}")
    if bill.customer_phone:
        console.print(f"  Phone: {bill.customer_phone}")
    console.print(_items_table(bill.items))
    console.print(f"  [bold]Total: {format_inr(bill.total_amount)}[/bold]")


def create_bill_menu(bill_service: BillService, invoice_numbers: InvoiceNumberService) -> Bill | None:
    console.print()
    console.print("[bold]Create New Bill[/bold]", style="cyan")

    invoice_number = invoice_numbers.get_next_invoice_number()
    bill_date = today()
    console.print(f"  Invoice Number: [bold]{invoice_number}[/bold]    Date: {bill_date}")
    console.print()

    while True:
        customer_name = questionary.text("Customer name:").ask()
        if customer_name is None:
            return None
        if customer_name.strip():
            break
        console.print("[red]Please enter customer name.[/red]")
    customer_phone = questionary.text("Customer phone (optional):").ask() or ""

    first = _ask_item(1)
    if first is None:
        return None
    description, qty, rate = first
    try:
        draft = Bill(
            invoice_number=invoice_number,
            date=bill_date,
            customer_name=customer_name,
            customer_phone=customer_phone,
            items=[LineItem(description=description, qty=qty, rate=rate)],
        )
    except PydanticValidationError as exc:
        console.print(f"[red]{ValidationError.from_pydantic(exc)}[/red]")
        return None

    while True:
        console.print(_items_table(draft.items))
        console.print(f"  [bold]Total: {format_inr(draft.total_amount)}[/bold]")
        action = questionary.select(
            "Items:",
            choices=["Add Item", "Remove Item", "Save Bill", "Cancel"],
        ).ask()

        if action is None or action == "Cancel":
            console.print("[yellow]Bill discarded.[/yellow]")
            return None
        elif action == "Add Item":
            item = _ask_item(len(draft.items) + 1)
            if item is not None:
                draft.add_item(*item)
        elif action == "Remove Item":
            if len(draft.items) <= 1:
                console.print("[yellow]A bill needs at least one item.[/yellow]")
                continue
            choices = {f"{item.sno} - {item.description}": item.sno - 1 for item in draft.items}
            choice = questionary.select("Remove which item?", choices=list(choices.keys()) + [BACK]).ask()
            if choice is None or choice == BACK:
                continue
            draft.remove_item(choices[choice])
        elif action == "Save Bill":
            break

    draft.created_at = now_timestamp()
    try:
        bill = bill_service.save_bill(draft)
    except (ValidationError, StorageError) as exc:
        console.print(f"[red]Error saving bill: {exc}[/red]")
        return None

    console.print()
    console.print("[green bold]Bill saved successfully![/green bold]")
    _show_bill_detail(bill)
    return bill


def _select_bill(bills: list[Bill], title: str) -> None:
    if not bills:
        console.print("[yellow]No bills found.[/yellow]")
        return

    table = Table(title=title)
    table.add_column("Invoice", style="dim")
    table.add_column("Date")
    table.add_column("Customer")
    table.add_column("Total", justify="right")
    for b in bills:
        table.add_row(b.invoice_number, b.date, b.customer_name, format_inr(b.total_amount))

    console.print()
    console.print(table)

    bill_choices = {f"{b.invoice_number} - {b.customer_name}": b for b in bills}
    choice = questionary.select("Select a bill:", choices=list(bill_choices.keys()) + [BACK]).ask()
    if choice is None or choice == BACK:
        return
    _show_bill_detail(bill_choices[choice])


def recent_bills_menu(bill_service: BillService) -> None:
    _select_bill(bill_service.list_bills(), "Recent Bills")


def search_bills_menu(bill_service: BillService) -> None:
    term = questionary.text("Customer name contains:").ask() or ""
    if not term.strip():
        console.print("[yellow]Enter a name to search.[/yellow]")
        return
    _select_bill(bill_service.search_bills(term), f"Bills matching '{term.strip()}'")


def filter_bills_menu(bill_service: BillService) -> None:
    from_date = questionary.text("From (DD/MM/YYYY):", default=today()).ask() or ""
    to_date = questionary.text("To (DD/MM/YYYY):", default=today()).ask() or ""
    try:
        bills = bill_service.filter_bills(from_date, to_date)
    except ValidationError as exc:
        console.print(f"[red]{exc}[/red]")
        return
    _select_bill(bills, f"Bills from {from_date} to {to_date}")


def find_bill_menu(bill_service: BillService) -> None:
    invoice_number = (questionary.text("Invoice number:").ask() or "").strip()
    if not invoice_number:
        return
    bill = bill_service.get_bill(invoice_number)
    if bill is None:
        console.print("[red]Bill not found.[/red]")
        return
    _show_bill_detail(bill)


def find_bills_menu(bill_service: BillService) -> None:
    term = questionary.text("Customer name contains (optional):").ask()
    if term is None:
        return
    from_date = questionary.text("From DD/MM/YYYY (optional):").ask() or ""
    to_date = questionary.text("To DD/MM/YYYY (optional):").ask() or ""
    try:
        bills = bill_service.find_bills(term, from_date, to_date)
    except ValidationError as exc:
        console.print(f"[red]{exc}[/red]")
        return
    console.print(f"Showing {len(bills)} of {len(bill_service.list_bills())} bills")
    _select_bill(bills, "Search Results")
