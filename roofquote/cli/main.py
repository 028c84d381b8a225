"""
RoofQuote CLI.

Command-line front end for the address → roof measurements → cost workflow.

Usage:
    roofquote search "123 Main St"
    roofquote estimate "123 Main St" --choice 1 --price 450 --save-dir frames/
    roofquote cost 1850 --price 425
    roofquote serve --port 8000
"""

from __future__ import annotations

import asyncio
import base64
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ..core.config import Settings
from ..core.errors import ConfigurationError
from ..orchestrator.shell import RoofQuoteShell
from ..reporting.view import ShellView, format_money, format_number
from ..roi.calculator import DEFAULT_PRICE_PER_SQUARE, estimate_cost
from ..utils.logging_config import setup_logging

app = typer.Typer(
    name="roofquote",
    help="RoofQuote - roof measurements and replacement cost from an address",
    add_completion=False,
)
console = Console()


def print_error(text: str) -> None:
    console.print(f"[red]✗[/red] {text}")


def print_success(text: str) -> None:
    console.print(f"[green]✓[/green] {text}")


def build_shell(settings: Settings) -> RoofQuoteShell:
    try:
        return RoofQuoteShell.from_settings(settings)
    except ConfigurationError as e:
        print_error(e.user_message)
        raise typer.Exit(code=2)


def print_predictions(view: ShellView) -> None:
    table = Table(title=f"Addresses matching '{view.input_text}'")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Address", style="white")
    for i, prediction in enumerate(view.predictions, start=1):
        table.add_row(str(i), prediction.description)
    console.print(table)


def print_results(view: ShellView) -> None:
    if view.capture is not None:
        console.print(f"[dim]{view.capture.progress_text}[/dim]")

    if view.measurements:
        table = Table(title="Roof Measurements")
        table.add_column("Measurement", style="cyan")
        table.add_column("Value", style="white", justify="right")
        for card in view.measurements:
            table.add_row(card.title, card.value)
        console.print(table)

    if view.cost is not None:
        cost = view.cost
        console.print(Panel.fit(
            f"Price per Square: [bold]{cost.price_label}[/bold] "
            f"(range {format_money(cost.price_min)}-{format_money(cost.price_max)})\n"
            f"Roof Size: [bold]{cost.squares_text}[/bold] ({cost.area_text})\n"
            f"Estimated Cost: [bold green]{cost.total_text}[/bold green]",
            title="Cost Estimation",
            border_style="blue",
        ))


def save_frames(shell: RoofQuoteShell, save_dir: Path) -> None:
    session = shell.state.session
    if session is None or not session.images:
        return
    save_dir.mkdir(parents=True, exist_ok=True)
    for frame in session.images:
        path = save_dir / f"roof_{frame.heading:03d}.jpg"
        path.write_bytes(base64.b64decode(frame.base64_payload))
    print_success(f"Saved {len(session.images)} frames to {save_dir}")


async def _search(shell: RoofQuoteShell, text: str) -> ShellView:
    shell.on_input(text)
    await shell.flush()
    return shell.view()


@app.command()
def search(
    text: str = typer.Argument(..., help="Partial street address"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """List address candidates for partial input."""
    setup_logging("DEBUG" if verbose else "WARNING")
    shell = build_shell(Settings())

    view = asyncio.run(_search(shell, text))
    if view.error:
        print_error(view.error)
        raise typer.Exit(code=1)
    if not view.predictions:
        console.print("[yellow]No matching addresses[/yellow]")
        return
    print_predictions(view)


async def _estimate(
    shell: RoofQuoteShell,
    address: str,
    choice: int,
    price: float,
) -> bool:
    view = await _search(shell, address)
    if view.error:
        print_error(view.error)
        return False
    if not view.predictions:
        print_error(f"No matching addresses for '{address}'")
        return False

    print_predictions(view)
    if not 1 <= choice <= len(shell.state.candidates):
        print_error(f"Choice {choice} is out of range 1-{len(shell.state.candidates)}")
        return False

    candidate = shell.state.candidates[choice - 1]
    if not await shell.select(candidate):
        print_error(shell.state.error)
        return False
    print_success(f"Selected {shell.state.selected_place.formatted_address}")

    with console.status("Loading map..."):
        opened = await shell.open_capture()
    if not opened:
        print_error(shell.state.error or "Map is not ready for capture")
        return False

    angles = shell.settings.capture_angles
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Capturing roof images...", total=len(angles))
        ok = await shell.capture(on_frame=lambda frame: progress.advance(task))
        progress.update(task, description="Done" if ok else "Failed")

    if not ok:
        print_error(shell.state.error)
        return False

    shell.set_price(price)
    return True


@app.command()
def estimate(
    address: str = typer.Argument(..., help="Street address to search for"),
    choice: int = typer.Option(1, "--choice", "-c", help="Which candidate to use (1-based)"),
    price: float = typer.Option(DEFAULT_PRICE_PER_SQUARE, "--price", "-p", help="USD per roofing square"),
    save_dir: Optional[Path] = typer.Option(None, "--save-dir", help="Write captured frames here"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """
    Resolve an address, capture the roof and estimate replacement cost.
    """
    setup_logging("DEBUG" if verbose else "WARNING")
    console.print(Panel.fit(
        "[bold blue]RoofQuote[/bold blue]\nFind Your Roof",
        border_style="blue",
    ))

    shell = build_shell(Settings())
    ok = asyncio.run(_estimate(shell, address, choice, price))

    if save_dir is not None:
        save_frames(shell, save_dir)

    print_results(shell.view())
    if not ok:
        raise typer.Exit(code=1)


@app.command()
def cost(
    area: float = typer.Argument(..., help="Roof area in square feet"),
    price: float = typer.Option(DEFAULT_PRICE_PER_SQUARE, "--price", "-p", help="USD per roofing square"),
):
    """Cost for a known roof area."""
    if area <= 0:
        print_error("Area must be positive")
        raise typer.Exit(code=1)

    result = estimate_cost(area, price)
    console.print(
        f"{format_number(result.area_sq_ft)} sq ft = {result.total_squares:.1f} squares × "
        f"{format_money(result.price_per_square)} = [bold green]{format_money(result.total_cost)}[/bold green]"
    )


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Run the REST API."""
    from ..api.main import run_server
    setup_logging()
    run_server(host=host, port=port, reload=reload)


def main():
    app()


if __name__ == "__main__":
    main()
