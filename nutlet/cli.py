"""Nutlet CLI - manage mints and inspect the local Cashu wallet state."""

import asyncio
from datetime import datetime
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings, configure_logging
from .types import MintConfig, SelectionError, SyncFailure, WalletError
from .wallet import Wallet

__version__ = "0.1.0"

app = typer.Typer(
    name="nutlet",
    help="Nutlet - local Cashu wallet state",
    rich_markup_mode="markdown",
)
mints_app = typer.Typer(help="Manage trusted mints")
app.add_typer(mints_app, name="mints")
console = Console()


def open_wallet() -> Wallet:
    return Wallet.open(Settings.from_env())


def handle_wallet_error(e: Exception) -> None:
    """Handle common wallet errors with user-friendly messages."""
    if isinstance(e, SelectionError):
        console.print(f"[yellow]⚠️  {e}[/yellow]")
    elif isinstance(e, WalletError):
        console.print(f"[red]❌ {e}[/red]")
    else:
        console.print(f"[red]❌ Error: {e}[/red]")


def _print_sync_results(results: dict) -> None:
    for url, result in results.items():
        if isinstance(result, SyncFailure):
            console.print(f"[red]❌ {url}: {result}[/red]")
        else:
            console.print(
                f"[green]✅ {url}[/green] ({len(result.keysets)} keysets)"
            )


# ─────────────────────────────── Mints ──────────────────────────────────


@mints_app.command("list")
def list_mints() -> None:
    """List configured mints."""
    try:
        wallet = open_wallet()
        registry = wallet.registry

        table = Table(title="Mints")
        table.add_column("", width=2)
        table.add_column("Name", style="cyan")
        table.add_column("URL", style="green")
        table.add_column("Synced", justify="center")
        table.add_column("Balance", justify="right")

        for mint in registry.list_mints():
            marker = "*" if mint.url == registry.active_url else ""
            synced = "✓" if registry.metadata_for(mint.url) else "-"
            balance = str(wallet.ledger.balance_for(mint.url))
            table.add_row(marker, mint.name, mint.url, synced, balance)

        console.print(table)
        if registry.active_url is None:
            console.print("[yellow]No active mint[/yellow]")
    except WalletError as e:
        handle_wallet_error(e)
        raise typer.Exit(1)


@mints_app.command("add")
def add_mint(
    url: Annotated[str, typer.Argument(help="Mint URL")],
    name: Annotated[
        Optional[str], typer.Option("--name", "-n", help="Display name")
    ] = None,
    sync: Annotated[
        bool, typer.Option("--sync/--no-sync", help="Fetch mint keys now")
    ] = True,
) -> None:
    """Add a trusted mint."""

    async def _add() -> None:
        async with open_wallet() as wallet:
            added = wallet.registry.add_mint(
                MintConfig(url=url, name=name or url), sync=False
            )
            if not added:
                console.print(f"[yellow]Mint {url} is already configured[/yellow]")
                return
            console.print(f"[green]✅ Added {url}[/green]")
            if sync:
                metadata = await wallet.registry.sync_mint(url)
                _print_sync_results({metadata.url: metadata})

    try:
        asyncio.run(_add())
    except WalletError as e:
        handle_wallet_error(e)
        raise typer.Exit(1)


@mints_app.command("remove")
def remove_mint(url: Annotated[str, typer.Argument(help="Mint URL")]) -> None:
    """Remove a mint. Proofs held from it are kept."""
    try:
        wallet = open_wallet()
        wallet.registry.remove_mint(url)
        console.print(f"[green]✅ Removed {url}[/green]")
        if balance := wallet.ledger.balance_for(url):
            console.print(f"[yellow]⚠️  You still hold {balance} at {url}[/yellow]")
        console.print(f"Active mint: {wallet.registry.active_url or 'none'}")
    except WalletError as e:
        handle_wallet_error(e)
        raise typer.Exit(1)


@mints_app.command("select")
def select_mint(url: Annotated[str, typer.Argument(help="Mint URL")]) -> None:
    """Select the active mint."""
    try:
        wallet = open_wallet()
        wallet.registry.select_mint(url)
        console.print(f"[green]✅ Active mint: {wallet.registry.active_url}[/green]")
    except WalletError as e:
        handle_wallet_error(e)
        raise typer.Exit(1)


@mints_app.command("sync")
def sync_mints(
    url: Annotated[
        Optional[str], typer.Argument(help="Mint URL (default: all mints)")
    ] = None,
) -> None:
    """Fetch info, keysets and keys from mints."""

    async def _sync() -> dict:
        async with open_wallet() as wallet:
            if url is None:
                return await wallet.registry.sync_all()
            try:
                return {url: await wallet.registry.sync_mint(url)}
            except SyncFailure as e:
                return {url: e}

    try:
        results = asyncio.run(_sync())
    except WalletError as e:
        handle_wallet_error(e)
        raise typer.Exit(1)

    _print_sync_results(results)
    if any(isinstance(r, SyncFailure) for r in results.values()):
        raise typer.Exit(1)


# ─────────────────────────────── Wallet ──────────────────────────────────


@app.command()
def balance(
    mint_url: Annotated[
        Optional[str], typer.Option("--mint", "-m", help="Mint URL")
    ] = None,
) -> None:
    """Show balance per mint."""
    wallet = open_wallet()
    ledger = wallet.ledger

    if mint_url is not None:
        console.print(f"{mint_url}: {ledger.balance_for(mint_url)}")
        return

    balances = ledger.balances()
    if not balances:
        console.print("[yellow]Wallet is empty[/yellow]")
        return

    table = Table(title="Balance")
    table.add_column("Mint", style="green")
    table.add_column("Proofs", justify="right")
    table.add_column("Balance", justify="right", style="cyan")
    for url, amount in balances.items():
        table.add_row(url, str(len(ledger.proofs_for(url))), str(amount))
    table.add_row("[bold]Total[/bold]", "", f"[bold]{ledger.total_balance()}[/bold]")
    console.print(table)


@app.command()
def history(
    mint_url: Annotated[
        Optional[str], typer.Option("--mint", "-m", help="Mint URL")
    ] = None,
    limit: Annotated[int, typer.Option("--limit", "-l", help="Max entries")] = 20,
) -> None:
    """Show transaction history."""
    entries = open_wallet().history.entries(mint_url)[:limit]
    if not entries:
        console.print("[yellow]No transactions[/yellow]")
        return

    table = Table(title="History")
    table.add_column("Date")
    table.add_column("Type", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Mint", style="green")
    for entry in entries:
        date = datetime.fromtimestamp(entry["date"]).strftime("%Y-%m-%d %H:%M")
        table.add_row(date, entry["type"], str(entry["amount"]), entry["mint"])
    console.print(table)


@app.command()
def info(
    mint_url: Annotated[
        Optional[str], typer.Option("--mint", "-m", help="Mint URL")
    ] = None,
) -> None:
    """Show cached information about the active (or given) mint."""
    wallet = open_wallet()
    registry = wallet.registry
    url = mint_url or registry.active_url
    if url is None:
        console.print("[red]No active mint[/red]")
        raise typer.Exit(1)

    metadata = registry.metadata_for(url)
    if metadata is None:
        console.print(f"[yellow]No metadata cached for {url}, run `nutlet mints sync`[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Mint Information")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("URL", metadata.url)
    table.add_row("Name", metadata.info.get("name", ""))
    table.add_row("Version", metadata.info.get("version", ""))
    if motd := metadata.info.get("motd"):
        table.add_row("MOTD", motd)
    table.add_row("", "")
    table.add_row("[bold]Keysets[/bold]", "")
    for keyset in metadata.keysets:
        state = "active" if keyset.get("active") else "inactive"
        fee = keyset.get("input_fee_ppk", 0)
        table.add_row(f"  {keyset['id']}", f"{keyset['unit']} {state} fee={fee}ppk")
    console.print(table)


def version_callback(value: bool) -> None:
    """Handle version flag."""
    if value:
        console.print(f"Nutlet v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, help="Show version"),
    ] = None,
) -> None:
    """Nutlet - local Cashu wallet state.

    📝 CONFIGURATION (environment or cwd/.env file):
    • NUTLET_DIR: data directory (default ~/.nutlet)
    • CASHU_MINTS: comma-separated mints seeded on first run
    • NUTLET_UNIT: wallet unit (default sat)
    • NUTLET_LOG_LEVEL: log level (default WARNING)
    """
    configure_logging(Settings.from_env().log_level)


if __name__ == "__main__":
    app()
