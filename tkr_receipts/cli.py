"""
Command-line interface for the receipt and quotation toolkit.

Usage:
    tkr receipt --form form.json --output-dir receipts/
    tkr receipts list --search "T12" --sort amount
    tkr receipts export --output receipts.csv
    tkr scope extract plans.pdf --output scope.json
    tkr quote build scope.json --file-name plans.pdf --prices prices.json
    tkr tents --status reserved
    tkr bookings --search 055 --export bookings.csv
"""

import asyncio
import json
import random
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tkr_receipts import __version__
from tkr_receipts.models.listing import PaginationParams, SortDirection
from tkr_receipts.models.quotation import ScopeItem
from tkr_receipts.models.receipt import ReceiptDetails
from tkr_receipts.models.tent import BookingStatus, TentStatus
from tkr_receipts.pdf.quotation import QuotationRenderError, generate_quotation_pdf
from tkr_receipts.services import tent_service
from tkr_receipts.services.gemini_service import (
    AIInvalidJSONError,
    AIServiceError,
    GeminiService,
    base_file_name,
)
from tkr_receipts.services.quotation_service import PricingError, apply_unit_prices
from tkr_receipts.services.receipt_counter import ReceiptCounter
from tkr_receipts.services.receipt_repository import ReceiptRepository
from tkr_receipts.services.receipt_service import GenerationError, ReceiptService
from tkr_receipts.services.session import logout as clear_session
from tkr_receipts.services.storage import StorageError, get_default_store
from tkr_receipts.utils.logging import configure_logging

app = typer.Typer(
    name="tkr",
    help="Tripoli Karting Race receipts, quotations and tent bookings",
    add_completion=False,
)
receipts_app = typer.Typer(help="Browse and export the receipt log")
scope_app = typer.Typer(help="AI scope extraction")
quote_app = typer.Typer(help="Quotation drafting")
app.add_typer(receipts_app, name="receipts")
app.add_typer(scope_app, name="scope")
app.add_typer(quote_app, name="quote")

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"tkr-receipts v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """Receipt, quotation and tent booking tools."""
    configure_logging()


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/] {escape(message)}", style="bold")
    raise typer.Exit(1)


def _load_json(path: Path):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Cannot read {path}: {e}")


# Receipts


@app.command()
def receipt(
    form: Optional[Path] = typer.Option(
        None, "--form", "-f",
        help="JSON file with receipt form fields (camelCase or snake_case)",
    ),
    received_from: Optional[str] = typer.Option(None, "--from", help="Received from"),
    amount: Optional[str] = typer.Option(None, "--amount", help="Amount"),
    tent: Optional[str] = typer.Option(None, "--tent", help="Tent number"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Notes"),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o",
        help="Directory for the PDF (defaults to RECEIPT_OUTPUT_DIR)",
    ),
):
    """Generate the next numbered receipt."""
    fields = _load_json(form) if form else {}
    if not isinstance(fields, dict):
        _fail(f"Form file must hold a JSON object: {form}")
    overrides = {
        "received_from_name": received_from,
        "amount": amount,
        "tent_number": tent,
        "notes": notes,
    }
    fields.update({k: v for k, v in overrides.items() if v is not None})

    try:
        details = ReceiptDetails.model_validate(fields)
    except ValidationError as e:
        _fail(f"Invalid receipt form:\n{e}")

    service = ReceiptService(get_default_store(), output_dir=output_dir)
    try:
        result = asyncio.run(service.generate(details))
    except (GenerationError, StorageError) as e:
        _fail(str(e))

    console.print(f"[green]Receipt {result.receipt_number}[/] written to {result.path}")


@app.command("next-number")
def next_number():
    """Show the number the next receipt will carry."""
    counter = ReceiptCounter(get_default_store())
    try:
        console.print(asyncio.run(counter.peek()))
    except StorageError as e:
        _fail(str(e))


@receipts_app.command("list")
def list_receipts(
    search: str = typer.Option("", "--search", "-s", help="Search text"),
    sort: str = typer.Option("created_at", "--sort", help="Field to sort by"),
    ascending: bool = typer.Option(False, "--asc", help="Sort ascending"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number"),
):
    """List stored receipts."""
    repository = ReceiptRepository(get_default_store())
    direction = SortDirection.ASC if ascending else SortDirection.DESC
    try:
        result = asyncio.run(
            repository.search(search, sort, direction, PaginationParams(page=page))
        )
    except ValueError as e:
        _fail(str(e))

    table = Table(title=f"Receipts (page {result.page} of {max(result.total_pages, 1)})")
    table.add_column("ID", style="dim")
    table.add_column("Number", style="cyan")
    table.add_column("Date")
    table.add_column("Received From")
    table.add_column("Amount", justify="right")
    table.add_column("Tent")
    for r in result.items:
        table.add_row(r.id, r.receipt_number, r.date, r.received_from, r.amount, r.tent_number)
    console.print(table)
    console.print(f"{result.total} matching receipt(s)")


@receipts_app.command("show")
def show_receipt(receipt_id: str = typer.Argument(..., help="Receipt record ID")):
    """Show one stored receipt as JSON."""
    repository = ReceiptRepository(get_default_store())
    record = asyncio.run(repository.get_receipt_by_id(receipt_id))
    if record is None:
        _fail(f"No receipt with ID {receipt_id}")
    console.print_json(record.model_dump_json(by_alias=True))


@receipts_app.command("delete")
def delete_receipt(receipt_id: str = typer.Argument(..., help="Receipt record ID")):
    """Delete one stored receipt."""
    repository = ReceiptRepository(get_default_store())
    try:
        deleted = asyncio.run(repository.delete_receipt(receipt_id))
    except StorageError as e:
        _fail(str(e))
    if not deleted:
        _fail(f"No receipt with ID {receipt_id}")
    console.print(f"[green]Deleted[/] {receipt_id}")


@receipts_app.command("clear")
def clear_receipts(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete every stored receipt."""
    if not yes and not typer.confirm("Delete ALL receipts? This cannot be undone"):
        raise typer.Exit()
    try:
        asyncio.run(ReceiptRepository(get_default_store()).clear_all_receipts())
    except StorageError as e:
        _fail(str(e))
    console.print("[yellow]Receipt log cleared[/]")


@receipts_app.command("stats")
def receipt_stats():
    """Show totals over the receipt log."""
    stats = asyncio.run(ReceiptRepository(get_default_store()).get_receipt_stats())
    table = Table(title="Receipt statistics", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total receipts", str(stats.total_receipts))
    table.add_row("Total amount", f"{stats.total_amount:,.2f}")
    table.add_row("This month", str(stats.this_month_receipts))
    table.add_row("Unique tents", str(stats.unique_tents))
    table.add_row("Average amount", f"{stats.average_amount:,.2f}")
    console.print(table)


@receipts_app.command("export")
def export_receipts(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="CSV file to write"),
):
    """Export the receipt log as CSV."""
    csv_text = asyncio.run(ReceiptRepository(get_default_store()).export_to_csv())
    output = output or Path(ReceiptRepository.export_filename())
    output.write_text(csv_text, encoding="utf-8")
    console.print(f"[green]Exported[/] to {output}")


@app.command()
def logout():
    """Clear the stored admin session."""
    if asyncio.run(clear_session(get_default_store())):
        console.print("Logged out")
    else:
        _fail("Could not clear the session")


# AI scope and quotations


@scope_app.command("extract")
def extract_scope(
    pdf: Path = typer.Argument(..., exists=True, dir_okay=False, help="Construction PDF"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write items as JSON"),
):
    """Extract painting, cladding and facade scope items from a PDF."""
    try:
        items = asyncio.run(GeminiService().process_pdf_for_scope(pdf))
    except AIInvalidJSONError as e:
        console.print(e.raw_response, style="dim")
        _fail(str(e))
    except AIServiceError as e:
        _fail(str(e))

    table = Table(title=f"Scope items in {pdf.name}")
    table.add_column("#", justify="right")
    table.add_column("Category")
    table.add_column("Description")
    table.add_column("Quantity")
    table.add_column("Page")
    for index, item in enumerate(items, start=1):
        table.add_row(str(index), item.category, item.item_description, item.quantity, item.page_number or "")
    console.print(table)

    if output:
        output.write_text(
            json.dumps([i.model_dump(by_alias=True) for i in items], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        console.print(f"[green]Saved[/] {len(items)} item(s) to {output}")


@quote_app.command("build")
def build_quote(
    scope_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Scope items JSON"),
    file_name: str = typer.Option(..., "--file-name", "-n", help="Client document name"),
    prices: Optional[Path] = typer.Option(
        None, "--prices",
        help="JSON object of unit prices keyed by item ID",
    ),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Directory for the PDF"),
):
    """Draft a quotation from scope items and render it as PDF."""
    try:
        items = [ScopeItem.model_validate(i) for i in _load_json(scope_file)]
    except (ValidationError, TypeError) as e:
        _fail(f"Invalid scope file: {e}")
    unit_prices = _load_json(prices) if prices else None
    if unit_prices is not None and not isinstance(unit_prices, dict):
        _fail(f"Price file must hold a JSON object keyed by item ID: {prices}")

    async def _build():
        structure = await GeminiService().generate_quotation_structure(items, file_name)
        if unit_prices:
            structure = apply_unit_prices(structure, unit_prices)
        return await generate_quotation_pdf(structure, base_file_name(file_name))

    try:
        document = asyncio.run(_build())
    except (PricingError, QuotationRenderError) as e:
        _fail(str(e))
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / document.filename
    path.write_bytes(document.content)
    console.print(f"[green]Quotation[/] ({document.page_count} page(s)) written to {path}")


@app.command()
def chat(
    message: str = typer.Argument(..., help="Question to ask"),
    context_file: Optional[Path] = typer.Option(
        None, "--context", "-c",
        help="Scope items JSON used as conversation context",
    ),
):
    """Ask the quantity-surveying assistant a question."""
    context = "You are helping review construction scope items."
    if context_file:
        context += "\n\nScope items:\n" + json.dumps(_load_json(context_file), indent=2, ensure_ascii=False)

    session = GeminiService().initialize_chat(context)
    try:
        reply = asyncio.run(session.send_message(message))
    except AIServiceError as e:
        _fail(str(e))
    console.print(reply)


# Tents and bookings


@app.command()
def tents(
    status: Optional[TentStatus] = typer.Option(None, "--status", "-s", help="Only this status"),
):
    """Show the tent layout around the track."""
    all_tents = tent_service.generate_sample_tents()
    counts = tent_service.status_counts(all_tents)
    shown = tent_service.filter_tents(all_tents, status)

    for side, side_tents in tent_service.group_by_side(shown).items():
        if not side_tents:
            continue
        table = Table(title=side.replace("_", " ").title())
        table.add_column("Tent")
        table.add_column("Status")
        table.add_column("Booked By")
        table.add_column("Hours", justify="right")
        for t in side_tents:
            table.add_row(t.id, t.status.value, t.booked_by or "", str(t.hours or ""))
        console.print(table)

    console.print(
        f"Total {counts['total']}: {counts['available']} available, "
        f"{counts['reserved']} reserved, {counts['occupied']} occupied"
    )


@app.command()
def bookings(
    search: str = typer.Option("", "--search", "-s", help="Contact, tent or booking ID"),
    status: Optional[BookingStatus] = typer.Option(None, "--status", help="Only this status"),
    sort: str = typer.Option("date", "--sort", help="Field to sort by"),
    ascending: bool = typer.Option(False, "--asc", help="Sort ascending"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the sample data"),
    export: Optional[Path] = typer.Option(None, "--export", help="Write matching bookings as CSV"),
):
    """Browse tent bookings."""
    sample = tent_service.generate_sample_bookings(rng=random.Random(seed))
    direction = SortDirection.ASC if ascending else SortDirection.DESC
    try:
        result = tent_service.search_bookings(
            sample, search, status, sort, direction,
            PaginationParams(page=page, page_size=tent_service.BOOKINGS_PER_PAGE),
        )
    except ValueError as e:
        _fail(str(e))

    table = Table(title=f"Tent bookings (page {result.page} of {max(result.total_pages, 1)})")
    for header in tent_service.BOOKING_CSV_HEADERS:
        table.add_column(header)
    for b in result.items:
        table.add_row(b.booking_id, b.tent_id, b.contact, b.date, str(b.duration), b.status.value, b.notes or "")
    console.print(table)

    if export:
        everything = tent_service.search_bookings(
            sample, search, status, sort, direction, PaginationParams(page=1, page_size=100)
        )
        export.write_text(tent_service.bookings_to_csv(everything.items), encoding="utf-8")
        console.print(f"[green]Exported[/] {everything.total} booking(s) to {export}")


if __name__ == "__main__":
    app()
