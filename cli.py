# cli.py: interactive admin console for the Level Up PC store API
import os
import sys
from datetime import datetime
from typing import List, Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from sdk.levelup_client import StoreClient

console = Console()
c = StoreClient(
    base_url=os.getenv("LEVELUP_API_URL", "http://127.0.0.1:3001"),
    admin_token=os.getenv("LEVELUP_ADMIN_TOKEN"),
)

status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Response helpers
# ---------------------------
def _unwrap_resp(resp: Any) -> Any:
    """
    If resp is a requests/httpx Response, try to decode JSON; else return as-is.
    """
    if resp is None:
        return None
    if hasattr(resp, "status_code"):
        try:
            return resp.json()
        except ValueError:
            return {"error": f"HTTP {resp.status_code}: {resp.text}"}
    return resp


def _error_text(body: Any) -> str:
    if isinstance(body, dict) and "error" in body:
        code = body.get("code")
        return f"{body['error']} ({code})" if code else str(body["error"])
    return str(body)


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Dict[str, Any]]):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title="📦 Products Catalog",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", justify="right", width=6)
    table.add_column("Name", style="bold", width=28)
    table.add_column("Price", justify="right", width=12)
    table.add_column("Stock", justify="right", width=7)
    table.add_column("Category", width=15)
    table.add_column("Brand", width=12)

    for p in products:
        stock = int(p.get("stock") or 0)
        stock_style = "green" if stock > 0 else "red"
        table.add_row(
            str(p.get("id", "N/A")),
            p.get("name", "N/A"),
            f"${float(p.get('price') or 0):,.0f}",
            f"[{stock_style}]{stock}[/{stock_style}]",
            p.get("category") or "-",
            p.get("brand") or "-",
        )
    console.print(table)


def show_account(info: Dict[str, Any]):
    table = Table(show_header=False, box=box.SIMPLE)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    for key in ("id", "nickname", "email", "site_id", "default_currency_id", "status"):
        table.add_row(key, str(info.get(key, "-")))
    console.print(Panel(table, title="💳 Mercado Pago account", border_style="green"))


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Returns the raw result, or None after printing the error.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        status_message = f"Error: {e}"
        console.print(show_status(f"Error: {e}", False))
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def get_product_completer():
    global product_cache
    if not product_cache:
        product_cache = (try_api(c.list_products) or {}).get("products", [])
    return WordCompleter([str(p.get("id")) for p in product_cache if p.get("id") is not None])


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🖥️ Level Up PC",
        "[bold blue]Store admin console[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_float(message: str, default: float = 0.0) -> float:
    while True:
        raw = Prompt.ask(message, default=str(default))
        try:
            return float(raw)
        except ValueError:
            console.print("[red]Please enter a valid number.[/red]")


def ask_product_id() -> Optional[int]:
    raw = prompt_with_autocomplete("Enter product ID", completer=get_product_completer()).strip()
    try:
        return int(raw)
    except ValueError:
        console.print("[red]Product IDs are integers.[/red]")
        return None


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global product_cache

    console.clear()
    console.print(create_header())

    while True:
        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "5", "🗑️ Delete product"),
            ("2", "ℹ️ Get product by ID", "6", "💬 Chat with assistant"),
            ("3", "➕ Create product", "7", "💳 Mercado Pago account"),
            ("4", "📊 Update stock", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 8)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            resp = try_api(c.list_products, success_msg="Products loaded")
            if resp is not None:
                product_cache = resp.get("products", [])
                show_products(product_cache)

        elif choice == "2":
            pid = ask_product_id()
            if pid is not None:
                resp = try_api(c.get_product, pid)
                if resp:
                    show_products([resp])

        elif choice == "3":
            name = prompt_with_autocomplete("Product name")
            price = ask_float("💰 Price", default=0.0)
            stock = IntPrompt.ask("📦 Stock", default=0)
            category = prompt_with_autocomplete("🏷️ Category")
            brand = prompt_with_autocomplete("Brand")
            resp = try_api(c.create_product, name, price, category, brand, stock=stock,
                           success_msg=f"Product '{name}' created")
            if resp:
                show_products([resp])
                product_cache = []

        elif choice == "4":
            pid = ask_product_id()
            if pid is not None:
                stock = IntPrompt.ask("New stock", default=0)
                try_api(c.update_stock, pid, stock, success_msg=f"Stock of {pid} set to {stock}")

        elif choice == "5":
            pid = ask_product_id()
            if pid is not None and Confirm.ask(f"[red]Delete product {pid}?[/red]"):
                removed = try_api(c.delete_product, pid, success_msg=f"Product {pid} deleted")
                if removed:
                    show_products([removed])
                    product_cache = []

        elif choice == "6":
            message = prompt_with_autocomplete("You")
            reply = try_api(c.chat, message)
            if reply:
                console.print(Panel(reply, title="🤖 Assistant", border_style="magenta"))

        elif choice == "7":
            body = _unwrap_resp(try_api(c.whoami))
            if isinstance(body, dict) and "error" not in body:
                show_account(body)
            elif body is not None:
                console.print(show_status(_error_text(body), False))

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Bye! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
