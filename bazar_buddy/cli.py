"""Command Line Interface for Bazar Buddy."""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from .core.config import LANGUAGES, settings
from .core.database import init_db
from .core.i18n import gettext, resolve_language
from .core.logging import configure_logging
from .client.backend import BackendClient, BackendError
from .client.export import ListExporter
from .client.forms import parse_quantity_input
from .client.store import AuthStore, GroceryStore, Notification
from .models.grocery import MONTHS, Unit
from .models.schemas import ItemCreate, ItemUpdate, ListDetailsUpdate
from .services.analytics_service import summarize_lists
from .web.pdf_utils import format_currency, format_quantity

console = Console()

UNIT_CHOICES = [unit.value for unit in Unit]


def run_async(coro):
    """Helper to run async functions."""
    return asyncio.run(coro)


def show_notification(notification: Notification):
    style = "red" if notification.is_error else "green"
    message = f"[{style}]{notification.title}[/{style}]"
    if notification.description:
        message += f" {notification.description}"
    console.print(message)


def money(amount: Optional[float]) -> str:
    return format_currency(amount, settings.currency, symbol=False)


def parse_quantity(text: str) -> float:
    quantity = parse_quantity_input(text)
    if not quantity:
        raise click.BadParameter(f"'{text}' is not a positive number", param_hint="quantity")
    return quantity


def parse_price(text: str) -> float:
    price = parse_quantity_input(text)
    if price is None:
        raise click.BadParameter(f"'{text}' is not a price", param_hint="price")
    return price


def parse_item_spec(spec: str) -> ItemCreate:
    """NAME[:QUANTITY[:UNIT[:PRICE]]], e.g. ``Rice:2:kg:10``."""
    parts = [part.strip() for part in spec.split(":")]
    fields = {"name": parts[0]}
    if len(parts) > 1 and parts[1]:
        fields["quantity"] = parse_quantity(parts[1])
    if len(parts) > 2 and parts[2]:
        fields["unit"] = parts[2]
    if len(parts) > 3 and parts[3]:
        fields["estimated_price"] = parse_price(parts[3])
    try:
        return ItemCreate(**fields)
    except ValueError as e:
        raise click.BadParameter(f"invalid item '{spec}': {e}", param_hint="--item")


class CliContext:
    """Where the CLI talks to and where it keeps its session."""

    def __init__(self, api_url: str = None, session_file: Path = None, transport=None, language: str = None):
        self.api_url = api_url
        self.session_file = session_file
        self.transport = transport
        self.language = resolve_language(language)

    def t(self, message: str) -> str:
        return gettext(message, self.language)

    @asynccontextmanager
    async def stores(self, require_auth: bool = True):
        async with BackendClient(self.api_url, transport=self.transport) as client:
            auth = AuthStore(client, self.session_file, notify=show_notification, language=self.language)
            grocery = GroceryStore(client, notify=show_notification, language=self.language)
            if require_auth and not await auth.restore():
                console.print(f"[red]{self.t('Not signed in.')}[/red] Run 'bazar-buddy login' first.")
                raise click.exceptions.Exit(1)
            yield auth, grocery


pass_cli = click.make_pass_decorator(CliContext, ensure=True)


def render_list(grocery_list, obj: CliContext):
    console.print(Panel(
        f"[bold]{grocery_list.title}[/bold]\n"
        f"{grocery_list.month} {grocery_list.year} - "
        f"{obj.t('Created on')} {grocery_list.created_at.strftime('%Y-%m-%d')}\n"
        f"{obj.t('Items')}: {len(grocery_list.items)}\n"
        f"{obj.t('Estimated Total')}: {money(grocery_list.total_estimated_price)}",
        title=f"List {grocery_list.id}"
    ))

    table = Table()
    table.add_column("ID", style="cyan")
    table.add_column(obj.t("Item"), style="green")
    table.add_column(obj.t("Quantity"), justify="right")
    table.add_column(obj.t("Unit"))
    table.add_column(obj.t("Est. Price"), justify="right")

    for item in grocery_list.items:
        table.add_row(
            item.id,
            item.name,
            format_quantity(item.quantity),
            item.unit,
            money(item.estimated_price) if item.estimated_price is not None else "-"
        )

    console.print(table)


@click.group()
@click.version_option(version=settings.app_version)
@click.option("--api-url", envvar="BAZAR_BUDDY_API_URL", help="Backend URL (default from config)")
@click.option("--lang", type=click.Choice(LANGUAGES), envvar="BAZAR_BUDDY_LANG",
              help="Interface language: en (English) or bn (Bengali)")
@click.pass_context
def cli(ctx, api_url: Optional[str], lang: Optional[str]):
    """Bazar Buddy - household grocery lists with price estimates"""
    configure_logging()
    ctx.ensure_object(CliContext)
    if api_url:
        ctx.obj.api_url = api_url
    if lang:
        ctx.obj.language = lang


# ==================== Server Commands ====================

@cli.command("init")
def init_database():
    """Initialize the database."""

    async def _init():
        await init_db()
        console.print("[green]Database initialized successfully![/green]")

    run_async(_init())


@cli.command("serve")
@click.option("--host", "-h", default="0.0.0.0", help="Host to bind")
@click.option("--port", "-p", type=int, default=8000, help="Port to bind")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool):
    """Start the API server."""
    import uvicorn

    console.print(f"[green]Starting {settings.app_name} at http://{host}:{port}[/green]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    uvicorn.run("bazar_buddy.main:app", host=host, port=port, reload=reload)


# ==================== Account Commands ====================

@cli.command("register")
@click.argument("name")
@click.argument("email")
@click.password_option()
@pass_cli
def register(obj: CliContext, name: str, email: str, password: str):
    """Create an account and sign in."""

    async def _register():
        async with obj.stores(require_auth=False) as (auth, _):
            await auth.register(name, email, password)

    run_async(_register())


@cli.command("login")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
@pass_cli
def login(obj: CliContext, email: str, password: str):
    """Sign in."""

    async def _login():
        async with obj.stores(require_auth=False) as (auth, _):
            await auth.login(email, password)

    run_async(_login())


@cli.command("logout")
@pass_cli
def logout(obj: CliContext):
    """Sign out and forget the saved session."""

    async def _logout():
        async with obj.stores() as (auth, _):
            await auth.logout()

    run_async(_logout())


@cli.command("whoami")
@pass_cli
def whoami(obj: CliContext):
    """Show the signed-in user."""

    async def _whoami():
        async with obj.stores() as (auth, _):
            console.print(f"{auth.user.name} <{auth.user.email}>")

    run_async(_whoami())


@cli.command("reset-password")
@click.argument("email", required=False)
@click.option("--token", help="Reset code from the email; prompts for the new password")
@pass_cli
def reset_password(obj: CliContext, email: Optional[str], token: Optional[str]):
    """Request a reset code, or set a new password with --token."""
    if not email and not token:
        raise click.UsageError("Give an EMAIL to request a code, or --token to use one")

    new_password = None
    if token:
        new_password = click.prompt("New password", hide_input=True, confirmation_prompt=True)

    async def _reset():
        async with obj.stores(require_auth=False) as (auth, _):
            if token:
                await auth.confirm_password_reset(token, new_password)
            else:
                await auth.request_password_reset(email)

    run_async(_reset())


# ==================== List Commands ====================

@cli.command("lists")
@click.option("--search", "-s", help="Filter by title or month")
@pass_cli
def lists(obj: CliContext, search: Optional[str]):
    """Show your grocery lists, newest first."""

    async def _lists():
        async with obj.stores() as (_, store):
            if not await store.refresh():
                return

            if not store.lists:
                message = obj.t("You haven't created any grocery lists yet.")
                console.print(f"[yellow]{message}[/yellow]")
                return

            shown = store.lists
            if search:
                needle = search.lower()
                shown = [
                    lst for lst in shown
                    if needle in lst.title.lower() or needle in lst.month.lower()
                ]
            if not shown:
                console.print(f"[yellow]{obj.t('No lists match your search.')}[/yellow]")
                return

            table = Table(title=obj.t("Your Grocery Lists"))
            table.add_column("ID", style="cyan")
            table.add_column(obj.t("List Name"), style="green")
            table.add_column(obj.t("Month"))
            table.add_column(obj.t("Items"), justify="right")
            table.add_column(obj.t("Est. Cost"), justify="right")
            table.add_column(obj.t("Created On"))

            for lst in shown:
                table.add_row(
                    lst.id,
                    lst.title,
                    f"{lst.month} {lst.year}",
                    str(len(lst.items)),
                    money(lst.total_estimated_price),
                    lst.created_at.strftime("%Y-%m-%d")
                )

            console.print(table)

    run_async(_lists())


@cli.command("show")
@click.argument("list_id")
@pass_cli
def show(obj: CliContext, list_id: str):
    """Show the items of a list."""

    async def _show():
        async with obj.stores() as (_, store):
            await store.refresh()
            grocery_list = store.get_list(list_id)
            if not grocery_list:
                console.print(f"[red]Grocery list not found:[/red] {list_id}")
                return
            render_list(grocery_list, obj)

    run_async(_show())


@cli.command("create")
@click.argument("title")
@click.option("--month", "-m", type=click.Choice(MONTHS, case_sensitive=False),
              default=MONTHS[date.today().month - 1], show_default=True)
@click.option("--year", "-y", type=int, default=date.today().year, show_default=True)
@click.option("--item", "-i", "items", multiple=True,
              help="NAME[:QUANTITY[:UNIT[:PRICE]]], repeatable")
@pass_cli
def create(obj: CliContext, title: str, month: str, year: int, items):
    """Create a list with its items."""
    parsed = [parse_item_spec(spec) for spec in items]

    async def _create():
        async with obj.stores() as (_, store):
            list_id = await store.create_list(title, month, year, parsed)
            if list_id:
                render_list(store.get_list(list_id), obj)

    run_async(_create())


@cli.command("rename")
@click.argument("list_id")
@click.argument("title")
@click.option("--month", "-m", type=click.Choice(MONTHS, case_sensitive=False))
@click.option("--year", "-y", type=int)
@pass_cli
def rename(obj: CliContext, list_id: str, title: str, month: Optional[str], year: Optional[int]):
    """Change the title (and optionally month or year) of a list."""

    async def _rename():
        async with obj.stores() as (_, store):
            await store.refresh()
            current = store.get_list(list_id)
            if not current:
                console.print(f"[red]Grocery list not found:[/red] {list_id}")
                return

            details = ListDetailsUpdate(
                title=title,
                month=month or current.month,
                year=year or current.year,
            )
            await store.update_list(list_id, details=details)

    run_async(_rename())


@cli.command("delete")
@click.argument("list_id")
@click.confirmation_option(prompt="Delete this list and all its items?")
@pass_cli
def delete(obj: CliContext, list_id: str):
    """Delete a list."""

    async def _delete():
        async with obj.stores() as (_, store):
            await store.delete_list(list_id)

    run_async(_delete())


# ==================== Item Commands ====================

@cli.command("add-item")
@click.argument("list_id")
@click.argument("name")
@click.option("--quantity", "-q", default="1", help="Quantity (digits and one decimal point)")
@click.option("--unit", "-u", type=click.Choice(UNIT_CHOICES), default="kg")
@click.option("--price", "-p", type=float, help="Estimated price")
@click.option("--estimate", is_flag=True, help="Fill the price with an AI estimate")
@pass_cli
def add_item(obj: CliContext, list_id: str, name: str, quantity: str, unit: str,
             price: Optional[float], estimate: bool):
    """Add an item to a list."""
    qty = parse_quantity(quantity)

    async def _add():
        async with obj.stores() as (_, store):
            await store.refresh()
            estimated = price
            if estimated is None and estimate:
                estimated = await store.generate_price_suggestion(name, qty, unit)
                console.print(f"Estimated price for {name}: {money(estimated)}")

            item = await store.add_item(
                list_id, ItemCreate(name=name, quantity=qty, unit=unit, estimated_price=estimated)
            )
            if item:
                grocery_list = store.get_list(list_id)
                console.print(f"[green]Added:[/green] {item.name} (ID: {item.id})")
                if grocery_list:
                    console.print(f"New total: {money(grocery_list.total_estimated_price)}")

    run_async(_add())


@cli.command("update-item")
@click.argument("list_id")
@click.argument("item_id")
@click.option("--name", "-n", help="New name")
@click.option("--quantity", "-q", help="New quantity")
@click.option("--unit", "-u", type=click.Choice(UNIT_CHOICES))
@click.option("--price", "-p", type=float, help="New estimated price")
@pass_cli
def update_item(obj: CliContext, list_id: str, item_id: str, name: Optional[str],
                quantity: Optional[str], unit: Optional[str], price: Optional[float]):
    """Edit an item of a list."""
    qty = parse_quantity(quantity) if quantity is not None else None

    async def _update():
        async with obj.stores() as (_, store):
            await store.refresh()
            grocery_list = store.get_list(list_id)
            current = next((i for i in grocery_list.items if i.id == item_id), None) if grocery_list else None
            if current is None:
                console.print(f"[red]Item not found:[/red] {item_id}")
                return

            item = await store.update_item(list_id, item_id, ItemUpdate(
                name=name or current.name,
                quantity=qty or current.quantity,
                unit=unit or current.unit,
                estimated_price=price if price is not None else current.estimated_price,
            ))
            if item:
                console.print(f"[green]Updated item:[/green] {item.name}")
                console.print(f"New total: {money(store.get_list(list_id).total_estimated_price)}")

    run_async(_update())


@cli.command("remove-item")
@click.argument("list_id")
@click.argument("item_id")
@pass_cli
def remove_item(obj: CliContext, list_id: str, item_id: str):
    """Remove an item from a list."""

    async def _remove():
        async with obj.stores() as (_, store):
            await store.refresh()
            if await store.remove_item(list_id, item_id):
                console.print("[green]Item removed.[/green]")
                grocery_list = store.get_list(list_id)
                if grocery_list:
                    console.print(f"New total: {money(grocery_list.total_estimated_price)}")

    run_async(_remove())


@cli.command("suggestions")
@pass_cli
def suggestions(obj: CliContext):
    """Items you bought before."""

    async def _suggestions():
        async with obj.stores() as (_, store):
            try:
                items = await store.client.previous_items()
            except BackendError as e:
                store.notify_error("Could not load suggestions", e)
                return

            if not items:
                console.print("[yellow]No previous items yet.[/yellow]")
                return

            table = Table(title="Previously Bought")
            table.add_column("Item", style="green")
            table.add_column("Unit")
            table.add_column("Est. Price", justify="right")
            for item in items:
                table.add_row(item.name, item.unit, money(item.estimated_price))
            console.print(table)

    run_async(_suggestions())


# ==================== Price & Insight Commands ====================

@cli.command("price")
@click.argument("name")
@click.option("--quantity", "-q", default="1", help="Quantity")
@click.option("--unit", "-u", type=click.Choice(UNIT_CHOICES), default="kg")
@pass_cli
def price(obj: CliContext, name: str, quantity: str, unit: str):
    """Estimate the price of an item."""
    qty = parse_quantity(quantity)

    async def _price():
        async with obj.stores() as (_, store):
            estimate = await store.generate_price_suggestion(name, qty, unit)
            console.print(f"Estimated price for {format_quantity(qty)} {unit} {name}: "
                          f"[bold]{money(estimate)}[/bold]")

    run_async(_price())


@cli.command("dashboard")
@pass_cli
def dashboard(obj: CliContext):
    """Spending overview for the last six months."""

    async def _dashboard():
        async with obj.stores() as (_, store):
            if not await store.refresh():
                return
            summary = summarize_lists(store.lists)

            console.print(Panel(
                f"""
[bold]{obj.t('Total Lists')}:[/bold] {summary.total_lists}
[bold]{obj.t('Total Items')}:[/bold] {summary.total_items}
[bold]{obj.t('Total Spent')}:[/bold] {money(summary.total_spent)}
[bold]{obj.t('Avg. List Cost')}:[/bold] {money(summary.average_per_list)}
                """,
                title=obj.t("Dashboard")
            ))

            table = Table(title=obj.t("Spending History"))
            table.add_column(obj.t("Month"))
            table.add_column(obj.t("Total Spent"), justify="right")
            for point in summary.monthly_spending:
                table.add_row(f"{point.name} {point.year}", money(point.value))
            console.print(table)

            if not summary.recent_lists:
                message = obj.t("You haven't created any grocery lists yet.")
                console.print(f"[yellow]{message}[/yellow]")
                return

            recent = Table(title=obj.t("Recent Lists"))
            recent.add_column(obj.t("List Name"), style="green")
            recent.add_column(obj.t("Items"), justify="right")
            recent.add_column(obj.t("Est. Cost"), justify="right")
            for lst in summary.recent_lists:
                recent.add_row(lst.title, str(len(lst.items)), money(lst.total_estimated_price))
            console.print(recent)

    run_async(_dashboard())


@cli.command("catalog")
@click.option("--category", "-c", default="all", help="Category, or 'all'")
@pass_cli
def catalog(obj: CliContext, category: str):
    """Popular Bangladeshi grocery items with market prices."""

    async def _catalog():
        async with obj.stores(require_auth=False) as (_, store):
            try:
                items = await store.client.catalog(category)
            except BackendError as e:
                store.notify_error("Could not load catalog", e)
                return

            table = Table(title=f"Grocery Items ({category})")
            table.add_column("Item", style="green")
            table.add_column("বাংলা")
            table.add_column("Category")
            table.add_column("Price", justify="right")
            table.add_column("Unit")
            for item in items:
                table.add_row(item.name_en, item.name_bn, item.category, money(item.estimated_price), item.unit)
            console.print(table)

    run_async(_catalog())


# ==================== Export & OCR Commands ====================

@cli.command("export")
@click.argument("list_id")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output file (suffix is chosen)")
@pass_cli
def export(obj: CliContext, list_id: str, output: Optional[Path]):
    """Save a list as a printable page or PDF."""

    async def _export():
        async with obj.stores() as (_, store):
            await store.refresh()
            exporter = ListExporter(store.client, store)
            grocery_list = store.get_list(list_id)
            target = output or Path(f"{grocery_list.title if grocery_list else list_id}".replace(" ", "_"))
            try:
                result = await exporter.export(list_id, target)
            except BackendError as e:
                store.notify_error("PDF Generation Issue", e)
                return
            console.print(f"[green]Saved {result.path}[/green] [dim]({result.strategy})[/dim]")

    run_async(_export())


@cli.command("ocr")
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_cli
def ocr(obj: CliContext, image: Path):
    """Read a shopping list or receipt from an image."""
    suffix = image.suffix.lower().lstrip(".")
    content_type = {
        "pdf": "application/pdf",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
    }.get(suffix, f"image/{suffix or 'png'}")

    async def _ocr():
        async with obj.stores() as (_, store):
            try:
                result = await store.client.extract_text(image.read_bytes(), image.name, content_type)
            except BackendError as e:
                store.notify_error("Text extraction failed", e)
                return

            if not result.success:
                console.print(f"[yellow]{result.error}[/yellow]")
                return

            console.print(Panel(result.extracted_text, title=f"Extracted text ({result.engine})"))
            if result.items:
                table = Table(title="Detected Items")
                table.add_column("Item", style="green")
                table.add_column("Qty", justify="right")
                table.add_column("Unit")
                for item in result.items:
                    table.add_row(item.name, format_quantity(item.quantity), item.unit)
                console.print(table)

    run_async(_ocr())


# ==================== Entry Point ====================

def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
