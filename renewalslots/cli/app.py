"""
Main CLI application using Typer.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Dict, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.sql_store import SqlSlotStore
from ..config import AppConfig, load_config
from ..domain.exceptions import InvalidTimeFormat, PersistenceError
from ..domain.models import ReconciliationPlan, ReconciliationResult, SlotAction
from ..domain.time_utils import duration_seconds, parse_time_of_day
from ..services.reconciliation import SlotReconciliationService

app = typer.Typer(
    name="renewalslots",
    help="Reconcile a customer's daily time slots against their package",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]

ACTION_STYLES = {
    SlotAction.KEEP: "dim",
    SlotAction.UPDATE: "yellow",
    SlotAction.CREATE: "green",
}


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _bootstrap(config_file: Optional[Path]) -> tuple[AppConfig, SqlSlotStore]:
    """Load config, set up logging and open the slot store."""
    config = load_config(config_file)
    _configure_logging(config.log_level)
    store = SqlSlotStore.from_url(config.resolved_database_url, echo=config.echo_sql)
    return config, store


def _format_duration(seconds: int) -> str:
    hours, remainder = divmod(seconds, 3600)
    return f"{hours}h {remainder // 60:02d}m"


def _load_payload(payload_file: Path) -> Dict[str, Any]:
    if not payload_file.exists():
        raise FileNotFoundError(f"Payload file not found: {payload_file}")

    with open(payload_file, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("Payload file must contain a JSON object at the root level.")
    return data


def _print_plan(plan: ReconciliationPlan) -> None:
    table = Table(
        title=f"Slot plan for customer {plan.customer_id}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Action", style="bold")
    table.add_column("Name", style="bold yellow")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Duration", justify="right")
    table.add_column("Stored id", style="dim")

    for decision in plan.decisions:
        table.add_row(
            f"[{ACTION_STYLES[decision.action]}]{decision.action.value}[/]",
            decision.name,
            str(decision.start),
            str(decision.end),
            _format_duration(decision.duration_seconds),
            str(decision.stored.id) if decision.stored else "-",
        )

    console.print()
    console.print(table)

    verdict = "[red]exceeds[/red]" if plan.exceeds_capacity else "[green]fits[/green]"
    console.print(
        f"\n  Total {_format_duration(plan.total_seconds)} of "
        f"{_format_duration(plan.package_seconds)} allowed: {verdict}"
    )
    for error in plan.errors:
        console.print(f"  [yellow]⚠ {error}[/yellow]")
    console.print()


def _print_result(result: ReconciliationResult) -> None:
    style = "green" if result.success else "red"
    lines = [f"[bold {style}]{result.message}[/bold {style}]"]
    if result.success:
        lines.append(f"\n[bold]Kept:[/bold] {result.valid_existing_count}")
        lines.append(f"[bold]Written:[/bold] {result.processed_count}")
    for error in result.errors:
        lines.append(f"[yellow]⚠ {error}[/yellow]")

    console.print(Panel.fit("\n".join(lines), title=result.state.value))


@app.command()
def init_db(config_file: ConfigOption = None):
    """
    Create the slot table in the configured database.
    """
    try:
        config, _ = _bootstrap(config_file)
        console.print(f"\n[green]✓ Slot table ready:[/green] {config.resolved_database_url}\n")

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def reconcile(
    payload_file: Annotated[Path, typer.Argument(help="JSON file with package, customer and slots")],
    config_file: ConfigOption = None,
    customer: Annotated[Optional[str], typer.Option("--customer", help="Customer id, overrides the payload")] = None,
    renewal: Annotated[bool, typer.Option("--renewal", help="Payload is a renewal envelope (createdRenewalTimeSlot).")] = False,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show the slot plan without writing anything.")] = False,
):
    """
    Reconcile submitted slots from a JSON payload.

    Examples:

        # Plain payload: {"customerId", "package": {"start", "end"}, "slots": [...]}
        renewalslots reconcile payload.json

        # Renewal envelope as produced at payment completion
        renewalslots reconcile renewal.json --renewal

        # Inspect the keep/update/create plan only
        renewalslots reconcile payload.json --dry-run
    """
    try:
        config, store = _bootstrap(config_file)
        payload = _load_payload(payload_file)
        service = SlotReconciliationService(store, default_window=config.default_window())

        if renewal:
            if customer:
                payload["customerId"] = customer
            if dry_run:
                console.print("[red]--dry-run is not supported for renewal envelopes.[/red]")
                raise typer.Exit(1)
            result = service.reconcile_renewal(payload)
        else:
            customer_id = customer or payload.get("customerId")
            if customer_id is None:
                console.print("[bold red]Error:[/bold red] No customer id in payload or --customer.")
                raise typer.Exit(1)

            slots = payload.get("slots") or []
            if dry_run:
                plan = service.preview(payload.get("package"), slots, customer_id)
                _print_plan(plan)
                return

            result = service.reconcile(payload.get("package"), slots, customer_id)

        _print_result(result)
        if not result.success:
            raise typer.Exit(1)

    except InvalidTimeFormat as e:
        console.print(f"[bold red]Invalid package window:[/bold red] {e}")
        raise typer.Exit(1)

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def slots(
    customer_id: Annotated[str, typer.Argument(help="Customer whose slots to list")],
    config_file: ConfigOption = None,
):
    """
    List the stored slots of a customer.
    """
    try:
        _, store = _bootstrap(config_file)
        stored = store.list_slots(customer_id)

        if not stored:
            console.print(f"[yellow]No slots stored for customer {customer_id}.[/yellow]")
            return

        table = Table(
            title=f"Slots of customer {customer_id}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Id", style="dim")
        table.add_column("Name", style="bold yellow")
        table.add_column("Start")
        table.add_column("End")
        table.add_column("Duration", justify="right")

        total = 0
        for slot in stored:
            try:
                seconds = duration_seconds(parse_time_of_day(slot.start), parse_time_of_day(slot.end))
                total += seconds
                duration = _format_duration(seconds)
            except InvalidTimeFormat:
                duration = "[red]invalid[/red]"
            table.add_row(str(slot.id), slot.name, slot.start, slot.end, duration)

        console.print()
        console.print(table)
        console.print(f"\n  Total: {_format_duration(total)}\n")

    except (FileNotFoundError, ValueError, PersistenceError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]renewalslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
