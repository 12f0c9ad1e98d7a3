"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Dict, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.booking_api_client import BookingApiClient
from ..adapters.mock_booking_store import MockBookingStore
from ..adapters.operating_hours import ConfigOperatingHoursStore
from ..config import AppConfig, get_default_config_path
from ..domain.availability_resolver import AvailabilityResolver
from ..domain.dates import format_day, venue_today
from ..domain.exceptions import SlotEngineError
from ..domain.models import AvailabilityResult, CalendarDate, LocalTime
from ..domain.operating_calendar import OperatingCalendar
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="salonslots",
    help="Find and book salon appointment slots",
    add_completion=False
)

console = Console()

REASON_LABELS = {
    "exceeds_closing": "runs past closing",
    "overlaps_booking": "booked",
    "too_soon": "too soon",
}

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use sample bookings instead of the booking backend.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """Salon slot engine command line."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_service(config: AppConfig, mock: bool) -> AvailabilityService:
    """Wire stores, calendar and resolver from configuration."""
    calendar = OperatingCalendar(ConfigOperatingHoursStore(config))
    resolver = AvailabilityResolver(lead_time_minutes=config.booking.lead_time_minutes)

    if mock:
        today = venue_today(pendulum.now(config.venue.timezone))
        store = MockBookingStore(data_file=config.mock_data_file, today=today)
    else:
        store = BookingApiClient(
            base_url=config.api.base_url,
            token=config.api.token,
            timeout_seconds=config.api.timeout_seconds,
            retries=config.api.retries,
            backoff_seconds=config.api.backoff_seconds,
        )

    return AvailabilityService(
        operating_calendar=calendar,
        booking_store=store,
        resolver=resolver,
        timezone=config.venue.timezone,
        step_minutes=config.booking.step_minutes,
        admin_step_minutes=config.booking.admin_step_minutes,
    )


def _parse_date(value: Optional[str], service: AvailabilityService) -> CalendarDate:
    if not value:
        return service.today()
    try:
        return CalendarDate.parse(value)
    except ValueError as e:
        console.print(f"[red]Error parsing date: {e}[/red]")
        raise typer.Exit(1)


def _resolve_duration(config: AppConfig, service_id: Optional[str], duration: Optional[int]) -> int:
    if service_id:
        service = config.find_service(service_id)
        if service is None:
            raise ValueError(f"Unknown service: '{service_id}'")
        return service.duration_minutes
    if duration is not None:
        return duration
    return config.booking.default_duration_minutes


def _slot_table(title: str, result: AvailabilityResult) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold")
    table.add_column("End")
    table.add_column("Status")

    for entry in result:
        end = LocalTime.from_minutes(min(entry.slot.end_minutes, 24 * 60))
        if entry.available:
            status = "[green]available[/green]"
        else:
            status = f"[dim]{REASON_LABELS.get(entry.reason.value, entry.reason.value)}[/dim]"
        table.add_row(entry.slot.start.format(), end.format(), status)

    return table


@app.command()
def slots(
    therapist: Annotated[str, typer.Argument(help="Therapist id or name")],
    config_file: ConfigOption = None,
    date: Annotated[Optional[str], typer.Option("--date", help="Day (YYYY-MM-DD). Defaults to today")] = None,
    service_id: Annotated[Optional[str], typer.Option("--service", "-s", help="Service id (sets the duration)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    step: Annotated[Optional[int], typer.Option("--step", help="Grid step in minutes")] = None,
    admin: Annotated[bool, typer.Option("--admin", help="Use the admin calendar grid step.")] = False,
    mock: MockOption = False,
):
    """
    Show the full slot grid of a therapist for one day.

    Examples:

        salonslots slots maya --date 2025-11-25 --service 101

        salonslots slots 2 --duration 45 --mock
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock)
        resource = config.resolve_therapist(therapist)
        day = _parse_date(date, service)
        minutes = _resolve_duration(config, service_id, duration)
        grid_step = step if step is not None else (config.booking.admin_step_minutes if admin else None)

        result = service.availability(
            resource_id=resource.id,
            date=day,
            service_duration_minutes=minutes,
            step_minutes=grid_step,
        )

        console.print()
        if result.is_empty:
            console.print(
                f"[yellow]No slots for {resource.name} on {format_day(day)}.[/yellow]\n"
                "The day is closed or already past."
            )
            return

        available = len(result.available_slots())
        console.print(_slot_table(f"{resource.name} · {format_day(day)} · {minutes} min", result))
        console.print(f"\n[bold green]{available}[/bold green] of {len(result)} slot(s) available\n")

    except (SlotEngineError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def book(
    therapist: Annotated[str, typer.Argument(help="Therapist id or name")],
    date: Annotated[str, typer.Option("--date", help="Day (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", help="Start time (HH:MM)")],
    service_id: Annotated[str, typer.Option("--service", "-s", help="Service id")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Book a slot; offers alternatives if it was just taken.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock)
        resource = config.resolve_therapist(therapist)
        day = _parse_date(date, service)
        start = LocalTime.parse(time)
        minutes = _resolve_duration(config, service_id, None)

        outcome = service.book(
            resource_id=resource.id,
            date=day,
            start_time=start,
            service_id=service_id,
            service_duration_minutes=minutes,
        )

        if outcome.succeeded:
            console.print(
                f"\n[bold green]✓ Booked[/bold green] {resource.name}, {format_day(day)} at {start} "
                f"(booking {outcome.booking.booking_id})\n"
            )
            return

        console.print("\n[yellow]This time was just taken, please pick another.[/yellow]")
        if outcome.alternatives:
            times = ", ".join(slot.start.format() for slot in outcome.alternatives)
            console.print(f"Still available: {times}\n")
        else:
            console.print("No other slots are left that day.\n")
        raise typer.Exit(2)

    except (SlotEngineError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def board(
    config_file: ConfigOption = None,
    date: Annotated[Optional[str], typer.Option("--date", help="Day (YYYY-MM-DD). Defaults to today")] = None,
    mock: MockOption = False,
):
    """
    Admin day view: every therapist's grid at the admin calendar step.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock)
        day = _parse_date(date, service)

        if not config.therapists:
            console.print("[yellow]No therapists defined in the config file.[/yellow]")
            return

        results: Dict[str, AvailabilityResult] = service.day_board(
            resource_ids=[therapist.id for therapist in config.therapists],
            date=day,
        )

        table = Table(title=f"{config.venue.name} · {format_day(day)}", show_header=True, header_style="bold cyan")
        table.add_column("Time", style="bold")
        for therapist in config.therapists:
            table.add_column(therapist.name)

        times = sorted({start for result in results.values() for start in result.starts()})
        for start in times:
            row = [start.format()]
            for therapist in config.therapists:
                entry = results[therapist.id].entry_at(start)
                if entry is None:
                    row.append("[dim]closed[/dim]")
                elif entry.available:
                    row.append("[green]free[/green]")
                else:
                    row.append(f"[dim]{REASON_LABELS.get(entry.reason.value, entry.reason.value)}[/dim]")
            table.add_row(*row)

        console.print()
        if not times:
            console.print(f"[yellow]Nobody is working on {format_day(day)}.[/yellow]\n")
            return
        console.print(table)
        console.print()

    except (SlotEngineError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def therapists(config_file: ConfigOption = None):
    """
    List all configured therapists with their weekly hours.
    """
    try:
        config = _load_config(config_file)

        if not config.therapists:
            console.print("[yellow]No therapists defined in the config file.[/yellow]")
            return

        table = Table(
            title="Configured therapists",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Id", style="bold yellow")
        table.add_column("Name")
        table.add_column("Hours", style="dim")

        for therapist in config.therapists:
            hours = config.weekly_hours_for(therapist.id)
            summary = ", ".join(f"{day} {value or 'closed'}" for day, value in hours.items())
            table.add_row(therapist.id, therapist.name, summary)

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
